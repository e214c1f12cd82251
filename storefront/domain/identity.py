# storefront/domain/identity.py
from dataclasses import dataclass


@dataclass(frozen=True)
class Authenticated:
    user_id: int

    @property
    def cart_key(self) -> str:
        return str(self.user_id)


@dataclass(frozen=True)
class Anonymous:
    #partitioning key only, never a credential
    local_token: str

    @property
    def cart_key(self) -> str:
        return self.local_token


Identity = Authenticated | Anonymous
