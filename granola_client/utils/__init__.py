from .tokens import TokenInfo, desktop_token_provider, extract_token, is_token_likely_valid, token_file_path

__all__ = [
    "TokenInfo",
    "desktop_token_provider",
    "extract_token",
    "is_token_likely_valid",
    "token_file_path",
]
