"""
On-chain identifiers, account layouts and deployment defaults.

Program ids and byte offsets follow the SPL Token, Token-2022 and Metaplex
Token Metadata account schemas. Defaults apply when the matching environment
variable is unset.
"""

TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
TOKEN_2022_PROGRAM_ID = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"
METADATA_PROGRAM_ID = "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s"

PUBKEY_LEN = 32

# Token account: Mint(0-32) | Owner(32-64) | Amount(64-72) | ...
TOKEN_ACCOUNT_SIZE = 165
ACCOUNT_MINT_OFFSET = 0
ACCOUNT_OWNER_OFFSET = 32
ACCOUNT_AMOUNT_OFFSET = 64

# Mint: MintAuthority COption(0-36) | Supply(36-44) | Decimals(44) | IsInitialized(45) | ...
MINT_SIZE = 82
MINT_DECIMALS_OFFSET = 44
MINT_INITIALIZED_OFFSET = 45

# Token-2022 extension area: AccountType byte at 165, then u16 type | u16 len TLVs
ACCOUNT_TYPE_OFFSET = TOKEN_ACCOUNT_SIZE
ACCOUNT_TYPE_MINT = 1
ACCOUNT_TYPE_ACCOUNT = 2
EXTENSION_TOKEN_METADATA = 19

# Metaplex metadata account: Key(0) | UpdateAuthority(1-33) | Mint(33-65) | Name | Symbol | Uri
METADATA_KEY_V1 = 4
METADATA_NAME_OFFSET = 1 + 32 + 32

LAMPORTS_PER_SOL = 1_000_000_000

DEFAULT_RPC_URL = "https://api.mainnet-beta.solana.com"
DEFAULT_RPC_TIMEOUT_S = 5.0
DEFAULT_MIN_BALANCE = 1_000_000
DEFAULT_TRANSACTION_AMOUNT = "0.1"
DEFAULT_TRANSACTION_RECIPIENT = "Hfz8tc8QjSXqgiyugAksdmQw9UJZCp7BruZXDRTSfdge"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
