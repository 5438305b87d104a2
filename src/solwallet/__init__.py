"""solwallet - a command-line Solana wallet with an encrypted keypair store."""

__version__ = "0.3.0"
