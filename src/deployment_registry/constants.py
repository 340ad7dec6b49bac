"""Configuration constants for deployment-registry library."""

# Confirmations waited before verification (ethers' `wait(5)` in the old scripts)
DEFAULT_CONFIRMATIONS = 5

# Tag used for duplicate detection when a deployment has none
UNTAGGED = "untagged"

# Private key of the deployment account
DEPLOYER_KEY_ENV = "DEPLOYER_PRIVATE_KEY"

# Network configuration based on ethereum-lists/chains
# manifest_name follows @openzeppelin/upgrades-core network naming
NETWORK_CONFIG = {
    "bsc": {
        "chain_id": 56,
        "chain_name": "BNB Smart Chain Mainnet",
        "block_explorer_url": "https://bscscan.com",
        "explorer_api_url": "https://api.bscscan.com/api",
        "default_rpc_env": "BSC_RPC_URL",
        "api_key_env": "BSCSCAN_API_KEY",
        "manifest_name": "bsc",
    },
    "bscTestnet": {
        "chain_id": 97,
        "chain_name": "BNB Smart Chain Testnet",
        "block_explorer_url": "https://testnet.bscscan.com",
        "explorer_api_url": "https://api-testnet.bscscan.com/api",
        "default_rpc_env": "BSC_TESTNET_RPC_URL",
        "api_key_env": "BSCSCAN_API_KEY",
        "manifest_name": "bsc-testnet",
    },
    "mainnet": {
        "chain_id": 1,
        "chain_name": "Ethereum Mainnet",
        "block_explorer_url": "https://etherscan.io",
        "explorer_api_url": "https://api.etherscan.io/api",
        "default_rpc_env": "ETH_RPC_URL",
        "api_key_env": "ETHERSCAN_API_KEY",
        "manifest_name": "mainnet",
    },
    "sepolia": {
        "chain_id": 11155111,
        "chain_name": "Sepolia",
        "block_explorer_url": "https://sepolia.etherscan.io",
        "explorer_api_url": "https://api-sepolia.etherscan.io/api",
        "default_rpc_env": "SEP_RPC_URL",
        "api_key_env": "ETHERSCAN_API_KEY",
        "manifest_name": "sepolia",
    },
}
