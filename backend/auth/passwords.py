from passlib.context import CryptContext

from backend.core import config

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=config.BCRYPT_ROUNDS,
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed_password: str | None) -> bool:
    # Federated accounts have no stored hash.
    if not hashed_password:
        return False
    return pwd_context.verify(password, hashed_password)
