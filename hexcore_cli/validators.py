from eth_account.hdaccount.mnemonic import Mnemonic

_ENGLISH = Mnemonic()


def normalize_mnemonic(mnemonic: str) -> str:
    return " ".join(mnemonic.lower().split())


def validate_bip39_mnemonic(mnemonic: str) -> bool:
    """Check word count, wordlist membership and checksum of an English BIP39 phrase."""
    if not isinstance(mnemonic, str):
        return False
    phrase = normalize_mnemonic(mnemonic)
    if not phrase:
        return False
    return _ENGLISH.is_mnemonic_valid(phrase)
