"""
PIN / 锁定密码哈希

格式: pbkdf2_sha256$<iterations>$<salt>$<digest>（salt/digest 为无填充 base64url）
"""

import base64
import binascii
import hashlib
import hmac
import secrets

ALGORITHM = "pbkdf2_sha256"
DEFAULT_ITERATIONS = 240_000


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _b64decode(text: str) -> bytes:
    padded = text + ("=" * (-len(text) % 4))
    return base64.urlsafe_b64decode(padded.encode("ascii"))


class SecretHasher:
    """PBKDF2 哈希器，PIN 和锁定密码共用"""

    def __init__(self, iterations: int = DEFAULT_ITERATIONS):
        if iterations <= 0:
            raise ValueError(f"iterations must be positive: {iterations}")
        self.iterations = iterations

    def _digest(self, secret: str, salt: bytes, iterations: int) -> bytes:
        return hashlib.pbkdf2_hmac("sha256", secret.encode("utf-8"), salt, iterations)

    def hash(self, secret: str) -> str:
        salt = secrets.token_bytes(16)
        digest = self._digest(secret, salt, self.iterations)
        return f"{ALGORITHM}${self.iterations}${_b64encode(salt)}${_b64encode(digest)}"

    def verify(self, secret: str, hashed: str) -> bool:
        """校验明文与哈希是否匹配，哈希格式错误视为不匹配"""
        try:
            algorithm, iterations_raw, salt_raw, digest_raw = hashed.split("$", 3)
            iterations = int(iterations_raw)
            salt = _b64decode(salt_raw)
            expected = _b64decode(digest_raw)
        except (ValueError, binascii.Error):
            return False

        if algorithm != ALGORITHM or iterations <= 0:
            return False

        return hmac.compare_digest(self._digest(secret, salt, iterations), expected)

    @staticmethod
    def is_hashed(value: str | None) -> bool:
        """是否为本模块生成的哈希（历史数据中可能存在明文 PIN）"""
        return bool(value) and value.startswith(f"{ALGORITHM}$")
