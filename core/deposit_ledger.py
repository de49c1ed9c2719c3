"""
Deposit Ledger for the cellar.

Every account owns an append-only list of deposit records plus a cursor pointing at
the first record that may still hold shares. A record is active once the cellar has
swept idle funds into its yield position at or after the record's timestamp; its
value then floats with the exchange rate. Inactive records keep the exact amount of
assets that was deposited until the next sweep.

Withdrawals and transfers consume records oldest first starting at the cursor.
Records are never removed, so indices stay stable; drained records keep zero shares.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from fixed_point import mul_div_up


@dataclass
class UserDeposit:
    """
    A single deposit record owned by one account.

    Amounts are on the normalized 18 decimal scale.
    """
    assets: int      # Assets deposited; only meaningful while the record is inactive
    shares: int      # Shares still backed by this record
    timestamp: int   # Time of deposit; 0 once the record has been consumed while active

    def is_active(self, last_sweep_timestamp: Optional[int]) -> bool:
        """A record is active iff it predates (or equals) the latest sweep."""
        return last_sweep_timestamp is not None and self.timestamp <= last_sweep_timestamp


@dataclass
class WithdrawalResult:
    """Outcome of consuming an account's records for a withdrawal."""
    assets: int = 0            # Normalized assets taken from the records
    shares: int = 0            # Shares to burn
    active_shares: int = 0     # Portion of shares taken from active records
    inactive_shares: int = 0   # Portion of shares taken from inactive records
    inactive_assets: int = 0   # Portion of assets taken from inactive records


@dataclass
class TransferResult:
    """Outcome of moving records from one account to another."""
    shares: int = 0
    slices: List[UserDeposit] = field(default_factory=list)


class DepositLedger:
    """
    Per-account deposit records with a first-live-index cursor.

    Value lookups for active records are delegated to a share valuation callback
    (shares -> normalized assets, rounded down) supplied by the cellar, so the
    ledger itself holds no exchange-rate state.
    """

    def __init__(self):
        # account -> list of UserDeposit
        self.deposits: Dict[str, List[UserDeposit]] = {}

        # account -> index of first record that may still hold shares
        self.current_index: Dict[str, int] = {}

    def deposits_of(self, account: str) -> List[UserDeposit]:
        return self.deposits.get(account, [])

    def current_deposit_index(self, account: str) -> int:
        return self.current_index.get(account, 0)

    def live_deposits(self, account: str) -> List[UserDeposit]:
        """Records from the cursor onwards."""
        return self.deposits_of(account)[self.current_deposit_index(account):]

    def record_deposit(self, account: str, assets: int, shares: int, timestamp: int) -> UserDeposit:
        """Append a new deposit record for an account."""
        record = UserDeposit(assets=assets, shares=shares, timestamp=timestamp)
        self.deposits.setdefault(account, []).append(record)
        return record

    def reset(self, account: str) -> None:
        """Forget all records of an account (used when its whole balance is burned)."""
        self.deposits.pop(account, None)
        self.current_index.pop(account, None)

    def record_value(self, record: UserDeposit, last_sweep_timestamp: Optional[int],
                     share_value: Callable[[int], int]) -> int:
        """Withdrawable normalized assets held by a record."""
        if record.is_active(last_sweep_timestamp):
            return share_value(record.shares)
        return record.assets

    def withdrawable_assets(self, account: str, last_sweep_timestamp: Optional[int],
                            share_value: Callable[[int], int]) -> int:
        """Sum of record values, i.e. what a full exit would pay out (normalized)."""
        return sum(
            self.record_value(record, last_sweep_timestamp, share_value)
            for record in self.live_deposits(account)
            if record.shares > 0
        )

    def balances(self, account: str, last_sweep_timestamp: Optional[int]) -> Tuple[int, int, int]:
        """
        Split an account's shares into active and inactive.

        Returns:
            (active_shares, inactive_shares, inactive_assets) with inactive_assets normalized
        """
        active_shares = 0
        inactive_shares = 0
        inactive_assets = 0

        for record in self.live_deposits(account):
            if record.shares == 0:
                continue
            if record.is_active(last_sweep_timestamp):
                active_shares += record.shares
            else:
                inactive_shares += record.shares
                inactive_assets += record.assets

        return active_shares, inactive_shares, inactive_assets

    def total_shares(self, account: str) -> int:
        return sum(record.shares for record in self.deposits_of(account))

    def withdraw(self, owner: str, assets: int, last_sweep_timestamp: Optional[int],
                 share_value: Callable[[int], int]) -> WithdrawalResult:
        """
        Consume an owner's records, oldest first, until `assets` have been taken.

        Active records are valued at the current exchange rate and have their stored
        asset amount and timestamp cleared once touched; inactive records give up
        exactly the assets taken. Shares removed from a record are rounded up, so
        the owner over-burns rather than the cellar under-collecting. A record whose
        value rounds to zero gives up its remaining shares for nothing.

        Args:
            owner: Account whose records are consumed
            assets: Normalized assets to take
            last_sweep_timestamp: Time of the cellar's latest sweep
            share_value: Callback converting shares to normalized assets (rounded down)

        Returns:
            WithdrawalResult with the assets taken and shares to burn
        """
        result = WithdrawalResult()
        records = self.deposits_of(owner)
        num_deposits = len(records)
        left_to_withdraw = assets

        for i in range(self.current_deposit_index(owner), num_deposits):
            record = records[i]

            if record.shares > 0 and left_to_withdraw > 0:
                is_active = record.is_active(last_sweep_timestamp)
                record_assets = share_value(record.shares) if is_active else record.assets

                if record_assets == 0:
                    withdrawn_assets = 0
                    withdrawn_shares = record.shares
                else:
                    withdrawn_assets = min(left_to_withdraw, record_assets)
                    withdrawn_shares = mul_div_up(record.shares, withdrawn_assets, record_assets)

                if is_active:
                    record.assets = 0
                    record.timestamp = 0
                    result.active_shares += withdrawn_shares
                else:
                    record.assets -= withdrawn_assets
                    result.inactive_shares += withdrawn_shares
                    result.inactive_assets += withdrawn_assets

                record.shares -= withdrawn_shares
                left_to_withdraw -= withdrawn_assets
                result.assets += withdrawn_assets
                result.shares += withdrawn_shares

            # Move the cursor only past fully drained records at the end of the pass
            if i == num_deposits - 1 or left_to_withdraw == 0:
                self.current_index[owner] = i if record.shares != 0 else i + 1
                break

        return result

    def transfer(self, sender: str, recipient: str, shares: int, last_sweep_timestamp: Optional[int],
                 only_active: bool = False) -> TransferResult:
        """
        Move up to `shares` worth of records from sender to recipient, oldest first.

        Active slices arrive with no stored assets and a cleared timestamp since their
        value is derived from the exchange rate. Inactive slices carry their pro-rata
        assets and the original timestamp. With only_active set, inactive records are
        skipped and the transfer may move fewer shares than requested.

        Returns:
            TransferResult with the shares moved and the records appended to recipient
        """
        result = TransferResult()
        records = self.deposits_of(sender)
        num_deposits = len(records)
        left_to_transfer = shares
        skipped_inactive = False

        for i in range(self.current_deposit_index(sender), num_deposits):
            record = records[i]
            is_active = record.is_active(last_sweep_timestamp)

            if only_active and not is_active:
                if record.shares > 0:
                    skipped_inactive = True
                continue

            if record.shares > 0 and left_to_transfer > 0:
                transferred_shares = min(left_to_transfer, record.shares)

                if is_active:
                    record.assets = 0
                    record.timestamp = 0
                    new_record = UserDeposit(assets=0, shares=transferred_shares, timestamp=0)
                else:
                    transferred_assets = min(
                        mul_div_up(record.assets, transferred_shares, record.shares),
                        record.assets,
                    )
                    record.assets -= transferred_assets
                    new_record = UserDeposit(
                        assets=transferred_assets,
                        shares=transferred_shares,
                        timestamp=record.timestamp,
                    )

                record.shares -= transferred_shares
                left_to_transfer -= transferred_shares
                result.shares += transferred_shares
                result.slices.append(new_record)

            if i == num_deposits - 1 or left_to_transfer == 0:
                if not skipped_inactive:
                    self.current_index[sender] = i if record.shares != 0 else i + 1
                break

        self.deposits.setdefault(recipient, []).extend(result.slices)

        return result
