"""口令哈希工具。"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import secrets
from functools import lru_cache

HASH_ALGORITHM = "pbkdf2_sha256"
SALT_BYTES = 16
DIGEST_BYTES = 32


def _b64_length(size: int) -> int:
    return 4 * ((size + 2) // 3)


@lru_cache
def _dummy_hash(iterations: int) -> str:
    # 进程内按迭代次数缓存，避免每次请求重复推导。
    return PasswordHasher(iterations).hash(secrets.token_urlsafe(16))


class PasswordHasher:
    """PBKDF2-SHA256 加盐哈希。

    输出格式：``pbkdf2_sha256$<iterations>$<salt_b64>$<digest_b64>``，
    盐与迭代次数随哈希一起存储，校验时按存储值重新推导。
    """

    def __init__(self, iterations: int) -> None:
        if iterations < 1:
            raise ValueError("iterations must be positive")
        self.iterations = iterations

    @property
    def expected_length(self) -> int:
        """当前配置下生成的哈希串长度，短于该长度的存量哈希视为不达标。"""
        return (
            len(HASH_ALGORITHM)
            + len(str(self.iterations))
            + _b64_length(SALT_BYTES)
            + _b64_length(DIGEST_BYTES)
            + 3
        )

    def hash(self, password: str) -> str:
        """生成口令哈希，每次调用使用新的随机盐。"""
        salt = secrets.token_bytes(SALT_BYTES)
        digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, self.iterations)
        salt_b64 = base64.b64encode(salt).decode("ascii")
        digest_b64 = base64.b64encode(digest).decode("ascii")
        return f"{HASH_ALGORITHM}${self.iterations}${salt_b64}${digest_b64}"

    def verify(self, password: str, password_hash: str) -> bool:
        """校验口令是否匹配；格式非法的哈希一律视为不匹配。"""
        try:
            algorithm, iterations_text, salt_b64, expected_digest_b64 = password_hash.split("$", 3)
            if algorithm != HASH_ALGORITHM:
                return False
            iterations = int(iterations_text)
            if iterations < 1:
                return False
            salt = base64.b64decode(salt_b64.encode("ascii"), validate=True)
            expected_digest = base64.b64decode(expected_digest_b64.encode("ascii"), validate=True)
        except (ValueError, TypeError, AttributeError, binascii.Error):
            return False

        actual_digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
        return hmac.compare_digest(actual_digest, expected_digest)

    def verify_dummy(self, password: str) -> None:
        """对固定的随机哈希做一次校验，使未知用户与错误口令的耗时一致。"""
        self.verify(password, _dummy_hash(self.iterations))
