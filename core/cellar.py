"""
Cellar model: a pooled fund that issues shares against a single managed asset.

Users deposit the current asset and receive shares priced at the cellar's exchange
rate (total managed assets / total shares). The steward periodically sweeps idle
deposits into a yield position, rebalances between assets and skims platform and
performance fees. A per-account deposit ledger tells apart shares that are earning
yield (active) from deposits still idle in the holding buffer (inactive).

All amounts crossing the public interface are in the current asset's native units;
internal accounting is normalized to 18 decimals.

Every state-changing operation is executed under one lock and is all-or-nothing:
if anything raises, the cellar and its collaborators are restored to their state
before the call.
"""

import copy
import functools
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from asset_token import AssetToken
from cellar_config import MAX_UINT256, CellarConfig
from cellar_errors import (
    DepositRestricted,
    InsufficientAllowance,
    InsufficientBalance,
    InvariantViolation,
    LiquidityRestricted,
    ProtectedAsset,
    ZeroAssets,
    ZeroShares,
)
from cellar_logging import get_logger
from deposit_ledger import DepositLedger
from fee_engine import FeeAccrual, FeeEngine
from fixed_point import Rounding, denormalize, normalize
from pool_lifecycle import LifecycleController
from position_rebalancer import PositionRebalancer
from reward_reinvestment import RewardReinvestor
from share_math import assets_to_shares, shares_to_assets

logger = get_logger("cellar")


@dataclass
class Event:
    """A record of something the cellar did, kept in Cellar.events."""
    name: str
    timestamp: int
    args: Dict[str, Any] = field(default_factory=dict)


def atomic(method):
    """
    Runs a cellar operation under the cellar lock and rolls back every participant's
    state if it raises. Nested atomic calls join the outer transaction.
    """
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            if self._in_transaction:
                return method(self, *args, **kwargs)

            snapshot = self._snapshot()
            self._in_transaction = True
            try:
                return method(self, *args, **kwargs)
            except Exception:
                self._restore(snapshot)
                raise
            finally:
                self._in_transaction = False

    return wrapper


class Cellar:
    """
    Pooled fund over one managed asset at a time.

    Args:
        asset: Token initially managed (and trusted)
        tokens: TokenRegistry containing every token the cellar may hold
        position: YieldPositionAdapter holding the cellar's active assets
        exchange: ExchangeVenue used for rebalancing and reinvesting
        staking: RewardStaking paying liquidity-mining rewards to the cellar
        fee_recipient: FeeRecipient receiving swept fees
        policy: AuthorizationPolicy guarding privileged operations
        clock: Source of the current time (now()/advance())
        config: CellarConfig, defaults used when omitted
        address: Address of the cellar; also holds fee shares
        share_symbol: Symbol of the share token
        fee_destination: Destination identifier passed to the fee recipient
    """

    def __init__(self, asset: AssetToken, tokens, position, exchange, staking, fee_recipient, policy, clock,
                 config: Optional[CellarConfig] = None, address="cellar", share_symbol="aave2-CLR-S",
                 fee_destination="cosmos1cellarfees"):
        self.config = config or CellarConfig()
        self.address = address
        self.tokens = tokens
        self.clock = clock

        # Current managed asset
        self.asset = asset

        # Share token; its symbol doubles as the cellar's token identity
        self.share_token = tokens.register(AssetToken(share_symbol, 18))

        # Collaborators
        self.position = position
        self.exchange = exchange
        self.staking = staking
        self.fee_recipient = fee_recipient
        self.fee_destination = fee_destination

        # Components
        self.ledger = DepositLedger()
        self.fee_engine = FeeEngine(self.config.platform_fee, self.config.performance_fee, clock.now())
        self.lifecycle = LifecycleController(policy)
        self.rebalancer = PositionRebalancer(self)
        self.reinvestor = RewardReinvestor(self)

        # Assets the steward allows the cellar to hold positions in
        self.trusted_assets = {asset.symbol}

        # Time idle funds were last swept into the position (None = never)
        self.last_sweep_timestamp = None

        # Restrictions in native units of the current asset (MAX_UINT256 once removed)
        self.deposit_cap = self.config.deposit_cap * 10 ** asset.decimals
        self.liquidity_cap = self.config.liquidity_cap * 10 ** asset.decimals

        self.events: List[Event] = []

        self._lock = threading.RLock()
        self._in_transaction = False

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def _participants(self):
        participants = [
            self, self.ledger, self.fee_engine, self.lifecycle,
            self.position, self.exchange, self.staking, self.fee_recipient,
        ]
        participants.extend(self.tokens)

        lending_pool = getattr(self.position, "lending_pool", None)
        if lending_pool is not None:
            participants.append(lending_pool)

        return participants

    def _snapshot(self):
        participants = self._participants()

        # Shared objects are kept by reference, everything else is deep-copied
        memo = {id(participant): participant for participant in participants}
        for shared in (self._lock, self.clock, self.tokens, self.lifecycle.policy, self.rebalancer, self.reinvestor):
            memo[id(shared)] = shared

        return [(participant, copy.deepcopy(participant.__dict__, memo)) for participant in participants]

    def _restore(self, snapshot):
        for participant, state in snapshot:
            participant.__dict__.clear()
            participant.__dict__.update(state)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def emit(self, name, **args):
        self.events.append(Event(name=name, timestamp=self.clock.now(), args=args))
        logger.debug(f"{name} {args}")

    def _normalized_totals(self):
        """(total managed assets normalized, total share supply)"""
        return self.total_assets_normalized(), self.share_token.total_supply

    def _share_value(self):
        """Shares -> normalized assets (rounded down) at the current exchange rate."""
        total_assets, total_supply = self._normalized_totals()
        return lambda shares: shares_to_assets(shares, total_assets, total_supply)

    def _to_shares(self):
        """Normalized assets -> shares (rounded down) at the current exchange rate."""
        total_assets, total_supply = self._normalized_totals()
        return lambda assets: assets_to_shares(assets, total_assets, total_supply)

    def _yield_index(self):
        return self.position.current_yield_index(self.asset.symbol)

    def _apply_fee_accrual(self, accrual: FeeAccrual):
        if accrual.performance_fees > 0:
            self.share_token.mint(self.address, accrual.performance_fees)
            self.emit("AccruedPerformanceFees", shares=accrual.performance_fees)
        if accrual.burnt_performance_fees > 0:
            self.share_token.burn(self.address, accrual.burnt_performance_fees)
            self.emit("BurntPerformanceFees", shares=accrual.burnt_performance_fees)

    def _accrue_performance_fees(self, update_state):
        accrual = self.fee_engine.accrue_performance_fees(
            self.active_assets_normalized(), self._yield_index(), self._to_shares(), update_state
        )
        self._apply_fee_accrual(accrual)
        return accrual

    def _refresh_fee_baseline(self):
        self.fee_engine.refresh_baseline(self.active_assets_normalized(), self._yield_index())

    def _settle(self, amount):
        """Makes sure the holding buffer has `amount`, pulling only the shortfall from the position."""
        buffer = self.asset.balance_of(self.address)
        if buffer >= amount:
            return

        pulled = self.position.withdraw_from_position(self.asset.symbol, amount - buffer)
        self.fee_engine.record_position_withdrawal(normalize(pulled, self.asset.decimals), self._yield_index())
        logger.debug(f"Pulled {pulled} {self.asset.symbol} from position")

    def _check_restrictions(self, assets, receiver):
        if self.deposit_cap != MAX_UINT256:
            owned = self.convert_to_assets(self.share_token.balance_of(receiver))
            if owned + assets > self.deposit_cap:
                raise DepositRestricted(self.deposit_cap)

        if self.liquidity_cap != MAX_UINT256:
            if self.total_assets() + assets > self.liquidity_cap:
                raise LiquidityRestricted(self.liquidity_cap)

    def _deposit(self, caller, receiver, assets, shares):
        self._check_restrictions(assets, receiver)

        self.asset.transfer(caller, self.address, assets)

        self.ledger.record_deposit(receiver, normalize(assets, self.asset.decimals), shares, self.clock.now())
        self.share_token.mint(receiver, shares)

        self.emit("Deposit", caller=caller, owner=receiver, assets=assets, shares=shares)
        logger.info(f"{caller} deposited {assets} {self.asset.symbol} for {shares} shares to {receiver}")

    def _withdraw(self, caller, receiver, owner, assets_normalized):
        """
        Consumes owner's records for `assets_normalized`, burns the shares and pays out.

        Returns:
            (assets paid in native units, shares burned)
        """
        result = self.ledger.withdraw(owner, assets_normalized, self.last_sweep_timestamp, self._share_value())

        if caller != owner:
            self.share_token.spend_allowance(owner, caller, result.shares)

        self.share_token.burn(owner, result.shares)

        assets = denormalize(result.assets, self.asset.decimals)
        self._settle(assets)
        self.asset.transfer(self.address, receiver, assets)

        self.emit("Withdraw", caller=caller, receiver=receiver, owner=owner, assets=assets, shares=result.shares)
        logger.info(f"{caller} withdrew {assets} {self.asset.symbol} for {result.shares} shares of {owner}")

        return assets, result.shares

    # ------------------------------------------------------------------
    # User operations
    # ------------------------------------------------------------------

    @atomic
    def deposit(self, caller, assets, receiver=None):
        """
        Deposits assets and mints shares to receiver.

        A request above the caller's balance deposits the whole balance.

        Args:
            caller: Address paying the assets
            assets: Amount of the current asset (native units)
            receiver: Address receiving the shares (defaults to caller)

        Returns:
            Shares minted

        Raises:
            ZeroAssets: If nothing would be deposited
            ZeroShares: If the deposit is worth no shares
            ContractPaused, ContractShutdown: If deposits are refused
            DepositRestricted, LiquidityRestricted: If a cap would be exceeded
        """
        receiver = receiver or caller
        self.lifecycle.require_deposits_allowed()

        if assets == 0:
            raise ZeroAssets()

        balance = self.asset.balance_of(caller)
        if assets > balance:
            logger.debug(f"Deposit of {assets} clamped to balance {balance}")
            assets = balance
            if assets == 0:
                raise ZeroAssets()

        shares = self.preview_deposit(assets)
        if shares == 0:
            raise ZeroShares()

        self._deposit(caller, receiver, assets, shares)

        return shares

    @atomic
    def mint(self, caller, shares, receiver=None):
        """
        Mints exactly `shares` to receiver, pulling the assets they cost (rounded up).

        A request costing more than the caller's balance mints what the balance buys.

        Returns:
            Assets deposited (native units)
        """
        receiver = receiver or caller
        self.lifecycle.require_deposits_allowed()

        if shares == 0:
            raise ZeroShares()

        affordable = self.preview_deposit(self.asset.balance_of(caller))
        if shares > affordable:
            logger.debug(f"Mint of {shares} shares clamped to {affordable}")
            shares = affordable
            if shares == 0:
                raise ZeroShares()

        assets = self.preview_mint(shares)
        if assets == 0:
            raise ZeroAssets()

        self._deposit(caller, receiver, assets, shares)

        return assets

    @atomic
    def withdraw(self, caller, assets, receiver=None, owner=None):
        """
        Withdraws assets from owner's deposits, oldest first.

        A request above what owner can withdraw withdraws everything available. So does a
        request for exactly `max_withdraw(owner)`, which drops the sub-unit remainder that
        native amounts cannot express.

        Args:
            caller: Address performing the withdrawal (needs allowance if not owner)
            assets: Amount of the current asset (native units)
            receiver: Address receiving the assets (defaults to caller)
            owner: Address whose shares are burned (defaults to caller)

        Returns:
            Shares burned

        Raises:
            ZeroAssets: If assets is zero or nothing can be withdrawn
            ZeroShares: If owner holds no shares
            InsufficientAllowance: If caller may not burn owner's shares
        """
        receiver = receiver or caller
        owner = owner or caller

        if assets == 0:
            raise ZeroAssets()

        if self.share_token.balance_of(owner) == 0:
            raise ZeroShares()

        assets_normalized = normalize(assets, self.asset.decimals)
        withdrawable = self.ledger.withdrawable_assets(owner, self.last_sweep_timestamp, self._share_value())
        if assets_normalized > withdrawable or assets >= denormalize(withdrawable, self.asset.decimals):
            logger.debug(f"Withdrawal of {assets_normalized} clamped to {withdrawable}")
            assets_normalized = withdrawable

        if assets_normalized == 0:
            raise ZeroAssets()

        _, shares = self._withdraw(caller, receiver, owner, assets_normalized)

        return shares

    @atomic
    def redeem(self, caller, shares, receiver=None, owner=None):
        """
        Redeems owner's shares for assets.

        Redeeming the whole balance (or more) withdraws everything the owner's deposits
        are worth; a partial redemption withdraws the shares' value at the current rate.

        Returns:
            Assets paid (native units)
        """
        receiver = receiver or caller
        owner = owner or caller

        if shares == 0:
            raise ZeroShares()

        balance = self.share_token.balance_of(owner)
        if balance == 0:
            raise ZeroShares()

        withdrawable = self.ledger.withdrawable_assets(owner, self.last_sweep_timestamp, self._share_value())

        if shares >= balance:
            assets_normalized = withdrawable
        else:
            total_assets, total_supply = self._normalized_totals()
            assets_normalized = min(shares_to_assets(shares, total_assets, total_supply), withdrawable)

        if assets_normalized == 0:
            raise ZeroAssets()

        assets, _ = self._withdraw(caller, receiver, owner, assets_normalized)

        return assets

    def transfer(self, caller, to, shares, only_active=False):
        """Transfers caller's shares; see transfer_from."""
        return self.transfer_from(caller, caller, to, shares, only_active)

    @atomic
    def transfer_from(self, caller, from_account, to, shares, only_active=False):
        """
        Moves shares together with the deposit records backing them, oldest first.

        Args:
            caller: Address performing the transfer (needs allowance if not from_account)
            from_account: Address sending the shares
            to: Address receiving the shares
            shares: Amount of shares
            only_active: Move only active records; may move less than requested

        Returns:
            Shares actually moved
        """
        if shares == 0:
            return 0

        balance = self.share_token.balance_of(from_account)
        if shares > balance:
            raise InsufficientBalance(
                f"{from_account} holds {balance} shares, cannot transfer {shares}",
                details={"balance": balance, "shares": shares},
            )

        if caller != from_account:
            allowed = self.share_token.allowance(from_account, caller)
            if allowed != MAX_UINT256 and allowed < shares:
                raise InsufficientAllowance(from_account, caller, allowed, shares)

        result = self.ledger.transfer(from_account, to, shares, self.last_sweep_timestamp, only_active)

        if caller != from_account:
            self.share_token.spend_allowance(from_account, caller, result.shares)

        self.share_token.transfer(from_account, to, result.shares)

        self.emit("Transfer", sender=from_account, receiver=to, shares=result.shares)
        logger.info(f"{from_account} transferred {result.shares} shares to {to}")

        return result.shares

    @atomic
    def approve(self, caller, spender, shares):
        self.share_token.approve(caller, spender, shares)
        self.emit("Approval", owner=caller, spender=spender, shares=shares)
        return True

    def allowance(self, owner, spender):
        return self.share_token.allowance(owner, spender)

    @atomic
    def accrue_fees(self):
        """
        Accrues platform and performance fees; open to any caller.
        Both are priced at the exchange rate before any fee shares are minted.

        Returns:
            FeeAccrual with the shares minted and burned
        """
        to_shares = self._to_shares()
        active_assets = self.active_assets_normalized()

        platform_fees = self.fee_engine.accrue_platform_fees(active_assets, self.clock.now(), to_shares)
        if platform_fees > 0:
            self.share_token.mint(self.address, platform_fees)
            self.emit("AccruedPlatformFees", shares=platform_fees)

        accrual = self.fee_engine.accrue_performance_fees(active_assets, self._yield_index(), to_shares, True)
        accrual.platform_fees = platform_fees
        self._apply_fee_accrual(accrual)

        logger.info(
            f"Accrued fees: platform {platform_fees}, performance {accrual.performance_fees}, "
            f"burnt {accrual.burnt_performance_fees}"
        )

        return accrual

    # ------------------------------------------------------------------
    # Steward operations
    # ------------------------------------------------------------------

    @atomic
    def enter_position(self, caller):
        """Sweeps idle assets into the yield position. Returns the amount moved."""
        self.lifecycle.require_authorized(caller)
        self.lifecycle.require_not_shutdown()

        amount = self.rebalancer.enter_position()
        self.emit("EnterPosition", asset=self.asset.symbol, assets=amount)

        return amount

    @atomic
    def rebalance(self, caller, path, min_assets_out=0):
        """Moves the whole cellar into path[-1]; see PositionRebalancer.rebalance."""
        self.lifecycle.require_authorized(caller)
        self.lifecycle.require_not_shutdown()

        return self.rebalancer.rebalance(list(path), min_assets_out)

    @atomic
    def claim_and_unstake(self, caller):
        self.lifecycle.require_authorized(caller)
        return self.reinvestor.claim_and_unstake()

    @atomic
    def reinvest(self, caller, path, min_assets_out=0):
        self.lifecycle.require_authorized(caller)
        self.lifecycle.require_not_shutdown()

        return self.reinvestor.reinvest(list(path), min_assets_out)

    @atomic
    def transfer_fees(self, caller):
        """
        Redeems every fee share held by the cellar and sends the assets to the fee recipient.

        Returns:
            Assets sent (native units)
        """
        self.lifecycle.require_authorized(caller)

        fee_shares = self.share_token.balance_of(self.address)
        platform_fees = self.fee_engine.state.accrued_platform_fees
        performance_fees = self.fee_engine.state.accrued_performance_fees

        total_assets, total_supply = self._normalized_totals()
        assets = denormalize(shares_to_assets(fee_shares, total_assets, total_supply), self.asset.decimals)

        if fee_shares > 0:
            self.share_token.burn(self.address, fee_shares)
        self.ledger.reset(self.address)

        if assets > 0:
            self._settle(assets)
            self.asset.transfer(self.address, self.fee_recipient.address, assets)
            self.fee_recipient.receive(self.asset.symbol, assets, self.fee_destination)

        self.fee_engine.reset_accrued()

        self.emit("TransferFees", platform_fees=platform_fees, performance_fees=performance_fees)
        logger.info(f"Transferred {assets} {self.asset.symbol} of fees ({fee_shares} shares)")

        return assets

    @atomic
    def set_trust(self, caller, asset, trusted):
        """
        Trusts or distrusts a position asset. Distrusting the current asset pulls
        every active asset back into the holding buffer.
        """
        self.lifecycle.require_authorized(caller)

        if trusted:
            self.trusted_assets.add(asset)
        else:
            self.trusted_assets.discard(asset)
            if asset == self.asset.symbol:
                self._accrue_performance_fees(update_state=False)
                self.rebalancer.exit_position()
                self._refresh_fee_baseline()

        self.emit("TrustChanged", asset=asset, trusted=trusted)
        logger.info(f"Trust for {asset} set to {trusted}")

    @atomic
    def remove_deposit_restriction(self, caller):
        self.lifecycle.require_authorized(caller)
        self.deposit_cap = MAX_UINT256
        self.emit("DepositRestrictionRemoved")

    @atomic
    def remove_liquidity_restriction(self, caller):
        self.lifecycle.require_authorized(caller)
        self.liquidity_cap = MAX_UINT256
        self.emit("LiquidityRestrictionRemoved")

    @atomic
    def set_pause(self, caller, paused):
        self.lifecycle.require_authorized(caller)
        self.lifecycle.set_pause(paused)
        self.emit("Pause", paused=paused)
        logger.info(f"Cellar {'paused' if paused else 'unpaused'}")

    @atomic
    def shutdown(self, caller):
        """
        Shuts the cellar down for good, accruing performance fees and pulling every
        active asset into the holding buffer so withdrawals never touch the position.
        """
        self.lifecycle.require_authorized(caller)
        self.lifecycle.shutdown()

        self._accrue_performance_fees(update_state=False)
        self.rebalancer.exit_position()
        self._refresh_fee_baseline()

        self.emit("Shutdown")
        logger.info("Cellar shut down")

    @atomic
    def sweep(self, caller, token, to=None):
        """
        Sends the cellar's whole balance of a stray token to `to` (defaults to caller).
        The current asset, its position token and the share token cannot be swept.
        """
        self.lifecycle.require_authorized(caller)

        protected = {self.asset.symbol, self.share_token.symbol, self.address}
        position_token = self.position.position_token(self.asset.symbol)
        if position_token is not None:
            protected.add(position_token)

        if token in protected:
            raise ProtectedAsset(token)

        stray = self.tokens.get(token)
        amount = stray.balance_of(self.address)
        stray.transfer(self.address, to or caller, amount)

        self.emit("Sweep", token=token, amount=amount)
        logger.info(f"Swept {amount} {token}")

        return amount

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def inactive_assets_normalized(self):
        return normalize(self.asset.balance_of(self.address), self.asset.decimals)

    def active_assets_normalized(self):
        return normalize(self.position.current_balance(self.asset.symbol), self.asset.decimals)

    def total_assets_normalized(self):
        return self.inactive_assets_normalized() + self.active_assets_normalized()

    def total_assets(self):
        return self.asset.balance_of(self.address) + self.position.current_balance(self.asset.symbol)

    def active_assets(self):
        return self.position.current_balance(self.asset.symbol)

    def inactive_assets(self):
        return self.asset.balance_of(self.address)

    def total_supply(self):
        return self.share_token.total_supply

    def balance_of(self, account):
        return self.share_token.balance_of(account)

    def convert_to_shares(self, assets):
        return self.preview_deposit(assets)

    def convert_to_assets(self, shares):
        return self.preview_redeem(shares)

    def preview_deposit(self, assets):
        total_assets, total_supply = self._normalized_totals()
        return assets_to_shares(normalize(assets, self.asset.decimals), total_assets, total_supply)

    def preview_mint(self, shares):
        total_assets, total_supply = self._normalized_totals()
        assets = shares_to_assets(shares, total_assets, total_supply, round_up=True)
        return denormalize(assets, self.asset.decimals, Rounding.UP)

    def preview_withdraw(self, assets):
        total_assets, total_supply = self._normalized_totals()
        return assets_to_shares(normalize(assets, self.asset.decimals), total_assets, total_supply, round_up=True)

    def preview_redeem(self, shares):
        total_assets, total_supply = self._normalized_totals()
        return denormalize(shares_to_assets(shares, total_assets, total_supply), self.asset.decimals)

    def max_deposit(self, owner):
        """
        Assets owner may still deposit. Unbounded once the liquidity restriction is
        lifted; the per-wallet cap only bounds this while the liquidity cap is in place.
        """
        if self.lifecycle.is_paused or self.lifecycle.is_shutdown:
            return 0

        if self.liquidity_cap == MAX_UINT256:
            return MAX_UINT256

        liquidity_left = max(self.liquidity_cap - self.total_assets(), 0)

        if self.deposit_cap == MAX_UINT256:
            return liquidity_left

        deposit_left = max(self.deposit_cap - self.convert_to_assets(self.balance_of(owner)), 0)

        return min(deposit_left, liquidity_left)

    def max_mint(self, owner):
        max_assets = self.max_deposit(owner)
        if max_assets == MAX_UINT256:
            return MAX_UINT256
        return self.preview_deposit(max_assets)

    def max_withdraw(self, owner):
        withdrawable = self.ledger.withdrawable_assets(owner, self.last_sweep_timestamp, self._share_value())
        return denormalize(withdrawable, self.asset.decimals)

    def max_redeem(self, owner):
        return self.balance_of(owner)

    def get_user_balances(self, owner):
        """
        Returns:
            (active_shares, inactive_shares, active_assets, inactive_assets), assets in native units
        """
        active_shares, inactive_shares, inactive_assets = self.ledger.balances(owner, self.last_sweep_timestamp)
        return (
            active_shares,
            inactive_shares,
            self.convert_to_assets(active_shares),
            denormalize(inactive_assets, self.asset.decimals),
        )

    def user_deposits(self, owner):
        return list(self.ledger.deposits_of(owner))

    def current_deposit_index(self, owner):
        return self.ledger.current_deposit_index(owner)

    def fees(self):
        """(yield_earned, last_active_assets, last_normalized_income, accrued_platform_fees, accrued_performance_fees)"""
        return self.fee_engine.state.as_tuple()

    @property
    def is_paused(self):
        return self.lifecycle.is_paused

    @property
    def is_shutdown(self):
        return self.lifecycle.is_shutdown

    def update_time(self, seconds: int) -> None:
        """
        Advance the simulation by the specified number of seconds.

        Args:
            seconds: Number of seconds to advance
        """
        self.clock.advance(seconds)

    def check_invariants(self):
        """
        Verifies the cellar's accounting.

        Raises:
            InvariantViolation: If share balances, deposit records or fee counters disagree
        """
        balances = self.share_token.balances
        if sum(balances.values()) != self.share_token.total_supply:
            raise InvariantViolation(
                "Total share supply differs from the sum of balances",
                details={"total_supply": self.share_token.total_supply, "sum": sum(balances.values())},
            )

        state = self.fee_engine.state
        if state.accrued_platform_fees < 0 or state.accrued_performance_fees < 0:
            raise InvariantViolation("Negative fee share counter", details={"fees": state.as_tuple()})

        accounts = set(balances) | set(self.ledger.deposits)
        for account in accounts:
            recorded = self.ledger.total_shares(account)
            if account == self.address:
                recorded += state.accrued_platform_fees + state.accrued_performance_fees
            if recorded != self.share_token.balance_of(account):
                raise InvariantViolation(
                    f"Deposit records of {account} back {recorded} shares, balance is "
                    f"{self.share_token.balance_of(account)}",
                    details={"account": account},
                )

            records = self.ledger.deposits_of(account)
            cursor = self.ledger.current_deposit_index(account)
            for index, record in enumerate(records):
                if record.shares < 0 or record.assets < 0:
                    raise InvariantViolation("Negative deposit record", details={"account": account, "index": index})
                if index < cursor and record.shares != 0:
                    raise InvariantViolation(
                        "Drained record still holds shares",
                        details={"account": account, "index": index, "shares": record.shares},
                    )

        return True
