from collections.abc import Iterable
from dataclasses import dataclass, replace

from .errors import WalletNotFoundError

SPLIT_CATEGORY_ID = "all"
SPLIT_CATEGORY_NAME = "Auto split"


@dataclass(frozen=True)
class Wallet:
    id: str
    name: str
    percentage: int
    balance: int = 0
    is_locked: bool = False
    color: str = ""
    icon: str = ""

    def with_balance(self, balance: int) -> "Wallet":
        return replace(self, balance=balance)


DEFAULT_WALLETS: tuple[Wallet, ...] = (
    Wallet(id="obligations", name="Obligations", percentage=32, color="bg-indigo-500", icon="ShieldCheck"),
    Wallet(id="investment", name="Investment", percentage=32, color="bg-emerald-500", icon="Zap"),
    Wallet(id="personal", name="Personal", percentage=31, color="bg-blue-500", icon="User"),
    Wallet(id="charity", name="Charity/Zakat", percentage=5, color="bg-rose-500", icon="Heart"),
)


def default_wallets() -> tuple[Wallet, ...]:
    return DEFAULT_WALLETS


def find_wallet(wallets: Iterable[Wallet], wallet_id: str) -> Wallet:
    wallet = next((w for w in wallets if w.id == wallet_id), None)
    if wallet is None:
        raise WalletNotFoundError(f"Wallet not found: {wallet_id}")
    return wallet


def total_balance(wallets: Iterable[Wallet]) -> int:
    return sum(wallet.balance for wallet in wallets)
