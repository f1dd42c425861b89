import hashlib


def sha256_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def analysis_cache_key(normalized_text: str, namespace: str = "analysis") -> str:
    return f"{namespace}:{sha256_text(normalized_text)}"
