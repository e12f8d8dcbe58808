"""API facade - named convenience operations over ``invoke``.

Each method fixes an action name, shapes the payload the server expects
(camelCase keys), and awaits the result. No state, no validation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .protocol.actions import ActionType

if TYPE_CHECKING:
    from .client import ExchangeClient


@dataclass
class AuthAPI:
    """Authentication operations."""

    _client: ExchangeClient

    async def login(self, email: str, password: str) -> Any:
        return await self._client.invoke(ActionType.AUTH_LOGIN, {"email": email, "password": password})

    async def register(self, email: str, name: str, password: str, pin: str) -> Any:
        return await self._client.invoke(
            ActionType.AUTH_REGISTER,
            {"email": email, "name": name, "password": password, "pin": pin},
        )

    async def profile(self) -> Any:
        return await self._client.invoke(ActionType.AUTH_PROFILE)

    async def logout(self) -> Any:
        return await self._client.invoke(ActionType.AUTH_LOGOUT)


@dataclass
class UserAPI:
    """Account, trading and recurring-plan operations for the logged-in user."""

    _client: ExchangeClient

    async def dashboard(self) -> Any:
        return await self._client.invoke(ActionType.USER_DASHBOARD)

    async def balances(self) -> Any:
        return await self._client.invoke(ActionType.USER_BALANCES)

    async def prices(self) -> Any:
        return await self._client.invoke(ActionType.USER_PRICES)

    async def portfolio(self) -> Any:
        return await self._client.invoke(ActionType.USER_PORTFOLIO)

    async def transactions(self, page: int = 1, limit: int = 20) -> Any:
        return await self._client.invoke(ActionType.USER_TRANSACTIONS, {"page": page, "limit": limit})

    async def recent_transactions(self, limit: int = 5) -> Any:
        return await self._client.invoke(ActionType.USER_RECENT_TRANSACTIONS, {"limit": limit})

    async def update_profile(
        self, current_password: str, name: str | None = None, email: str | None = None
    ) -> Any:
        payload: dict[str, Any] = {"currentPassword": current_password}
        if name:
            payload["name"] = name
        if email:
            payload["email"] = email
        return await self._client.invoke(ActionType.USER_UPDATE_PROFILE, payload)

    async def change_password(self, current_password: str, new_password: str) -> Any:
        return await self._client.invoke(
            ActionType.USER_CHANGE_PASSWORD,
            {"currentPassword": current_password, "newPassword": new_password},
        )

    async def verify_pin(self, pin: str) -> Any:
        return await self._client.invoke(ActionType.USER_VERIFY_PIN, {"pin": pin})

    async def change_pin(self, new_pin: str, current_password: str) -> Any:
        """Set a new trading PIN. The server asks for the account password, not the old PIN."""
        return await self._client.invoke(
            ActionType.USER_CHANGE_PIN, {"newPin": new_pin, "currentPassword": current_password}
        )

    # Market orders

    async def buy(self, amount: float) -> Any:
        return await self._client.invoke(ActionType.USER_BUY, {"amount": amount})

    async def sell(self, amount: float) -> Any:
        return await self._client.invoke(ActionType.USER_SELL, {"amount": amount})

    # Conditional (limit) orders

    async def limit_buy(self, amount: float, target_price: float) -> Any:
        return await self._client.invoke(
            ActionType.USER_LIMIT_BUY, {"amount": amount, "targetPrice": target_price}
        )

    async def limit_sell(self, amount: float, target_price: float) -> Any:
        return await self._client.invoke(
            ActionType.USER_LIMIT_SELL, {"amount": amount, "targetPrice": target_price}
        )

    async def cancel_limit_order(self, order_id: int) -> Any:
        return await self._client.invoke(ActionType.USER_CANCEL_LIMIT_ORDER, {"orderId": order_id})

    async def limit_orders(self) -> Any:
        return await self._client.invoke(ActionType.USER_LIMIT_ORDERS)

    # Recurring (DCA) plans

    async def dca_plans(self) -> Any:
        return await self._client.invoke(ActionType.USER_DCA_PLANS)

    async def create_dca_buy_plan(self, plan: dict[str, Any]) -> Any:
        return await self._client.invoke(ActionType.USER_CREATE_DCA_BUY, plan)

    async def create_dca_sell_plan(self, plan: dict[str, Any]) -> Any:
        return await self._client.invoke(ActionType.USER_CREATE_DCA_SELL, plan)

    async def pause_dca_plan(self, plan_id: int) -> Any:
        return await self._client.invoke(ActionType.USER_PAUSE_DCA_PLAN, {"planId": plan_id})

    async def resume_dca_plan(self, plan_id: int) -> Any:
        return await self._client.invoke(ActionType.USER_RESUME_DCA_PLAN, {"planId": plan_id})

    async def delete_dca_plan(self, plan_id: int) -> Any:
        return await self._client.invoke(ActionType.USER_DELETE_DCA_PLAN, {"planId": plan_id})


@dataclass
class LoanAPI:
    """Collateralised loan operations."""

    _client: ExchangeClient

    async def status(self) -> Any:
        return await self._client.invoke(ActionType.USER_LOAN_STATUS)

    async def history(self, loan_id: int | None = None) -> Any:
        payload = {"loanId": loan_id} if loan_id is not None else {}
        return await self._client.invoke(ActionType.USER_LOAN_HISTORY, payload)

    async def deposit_collateral(self, collateral_amount: float) -> Any:
        return await self._client.invoke(
            ActionType.USER_DEPOSIT_COLLATERAL, {"collateralAmount": collateral_amount}
        )

    async def add_collateral(self, collateral_amount: float) -> Any:
        return await self._client.invoke(
            ActionType.USER_ADD_COLLATERAL, {"collateralAmount": collateral_amount}
        )

    async def borrow(self, amount: float) -> Any:
        return await self._client.invoke(ActionType.USER_BORROW_FUNDS, {"amount": amount})

    async def repay(self, amount: float) -> Any:
        return await self._client.invoke(ActionType.USER_REPAY_LOAN, {"amount": amount})

    async def partial_liquidation(self, amount: float) -> Any:
        return await self._client.invoke(ActionType.USER_PARTIAL_LIQUIDATION, {"amount": amount})

    async def full_liquidation(self) -> Any:
        return await self._client.invoke(ActionType.USER_FULL_LIQUIDATION)

    async def liquidation_risk(self) -> Any:
        return await self._client.invoke(ActionType.USER_LIQUIDATION_RISK)


@dataclass
class PublicAPI:
    """Market data that needs no account privileges."""

    _client: ExchangeClient

    async def bitcoin_price(self) -> Any:
        return await self._client.invoke(ActionType.PUBLIC_BITCOIN_PRICE)

    async def bitcoin_data(self) -> Any:
        return await self._client.invoke(ActionType.PUBLIC_BITCOIN_DATA)

    async def bitcoin_sentiment(self) -> Any:
        return await self._client.invoke(ActionType.PUBLIC_BITCOIN_SENTIMENT)

    async def bitcoin_charts(self, timeframe: str | None = None) -> Any:
        payload = {"timeframe": timeframe} if timeframe else {}
        return await self._client.invoke(ActionType.PUBLIC_BITCOIN_CHARTS, payload)

    async def market_data(self) -> Any:
        return await self._client.invoke(ActionType.PUBLIC_MARKET_DATA)

    async def trading_rates(self) -> Any:
        return await self._client.invoke(ActionType.PUBLIC_TRADING_RATES)

    async def platform_stats(self) -> Any:
        return await self._client.invoke(ActionType.PUBLIC_PLATFORM_STATS)

    async def server_time(self) -> Any:
        return await self._client.invoke(ActionType.PUBLIC_SERVER_TIME)


@dataclass
class AdminAPI:
    """Administrative user and settings operations."""

    _client: ExchangeClient

    async def dashboard(self) -> Any:
        return await self._client.invoke(ActionType.ADMIN_DASHBOARD)

    async def users(self, page: int = 1, limit: int = 20) -> Any:
        return await self._client.invoke(ActionType.ADMIN_GET_USERS, {"page": page, "limit": limit})

    async def create_user(self, user: dict[str, Any]) -> Any:
        return await self._client.invoke(ActionType.ADMIN_CREATE_USER, user)

    async def delete_user(self, user_id: int) -> Any:
        return await self._client.invoke(ActionType.ADMIN_DELETE_USER, {"userId": user_id})

    async def deposit_inr(self, user_id: int, amount: float) -> Any:
        return await self._client.invoke(
            ActionType.ADMIN_DEPOSIT_INR, {"userId": user_id, "amount": amount}
        )

    async def withdraw_inr(self, user_id: int, amount: float) -> Any:
        return await self._client.invoke(
            ActionType.ADMIN_WITHDRAW_INR, {"userId": user_id, "amount": amount}
        )

    async def settings(self) -> Any:
        return await self._client.invoke(ActionType.ADMIN_GET_SETTINGS)

    async def update_settings(self, settings: dict[str, Any]) -> Any:
        return await self._client.invoke(ActionType.ADMIN_UPDATE_SETTINGS, settings)

    async def system_status(self) -> Any:
        return await self._client.invoke(ActionType.ADMIN_SYSTEM_STATUS)
