"""Action catalogue understood by the trading server.

Actions are ``<module>.<method>`` strings; the server routes on the module
prefix. The client treats them as opaque and this list is informational.
"""

from __future__ import annotations

from enum import Enum


class ActionType(str, Enum):
    """All request actions used by the API facade."""

    # Authentication
    AUTH_LOGIN = "auth.login"
    AUTH_REGISTER = "auth.register"
    AUTH_PROFILE = "auth.profile"
    AUTH_LOGOUT = "auth.logout"

    # Account
    USER_DASHBOARD = "user.dashboard"
    USER_BALANCES = "user.balances"
    USER_PRICES = "user.prices"
    USER_PORTFOLIO = "user.portfolio"
    USER_TRANSACTIONS = "user.transactions"
    USER_RECENT_TRANSACTIONS = "user.recent-transactions"
    USER_UPDATE_PROFILE = "user.update-profile"
    USER_CHANGE_PASSWORD = "user.change-password"
    USER_VERIFY_PIN = "user.verify-pin"
    USER_CHANGE_PIN = "user.change-pin"

    # Trading
    USER_BUY = "user.buy"
    USER_SELL = "user.sell"
    USER_LIMIT_BUY = "user.limit-buy"
    USER_LIMIT_SELL = "user.limit-sell"
    USER_CANCEL_LIMIT_ORDER = "user.cancel-limit-order"
    USER_LIMIT_ORDERS = "user.limit-orders"

    # Recurring (DCA) plans
    USER_DCA_PLANS = "user.dca-plans"
    USER_CREATE_DCA_BUY = "user.create-dca-buy"
    USER_CREATE_DCA_SELL = "user.create-dca-sell"
    USER_PAUSE_DCA_PLAN = "user.pause-dca-plan"
    USER_RESUME_DCA_PLAN = "user.resume-dca-plan"
    USER_DELETE_DCA_PLAN = "user.delete-dca-plan"

    # Loans
    USER_LOAN_STATUS = "user.loan-status"
    USER_LOAN_HISTORY = "user.loan-history"
    USER_DEPOSIT_COLLATERAL = "user.deposit-collateral"
    USER_BORROW_FUNDS = "user.borrow-funds"
    USER_REPAY_LOAN = "user.repay-loan"
    USER_ADD_COLLATERAL = "user.add-collateral"
    USER_PARTIAL_LIQUIDATION = "user.partial-liquidation"
    USER_FULL_LIQUIDATION = "user.full-liquidation"
    USER_LIQUIDATION_RISK = "user.liquidation-risk"

    # Public market data
    PUBLIC_BITCOIN_PRICE = "public.bitcoin-price"
    PUBLIC_BITCOIN_DATA = "public.bitcoin-data"
    PUBLIC_BITCOIN_SENTIMENT = "public.bitcoin-sentiment"
    PUBLIC_BITCOIN_CHARTS = "public.bitcoin-charts"
    PUBLIC_MARKET_DATA = "public.market-data"
    PUBLIC_TRADING_RATES = "public.trading-rates"
    PUBLIC_PLATFORM_STATS = "public.platform-stats"
    PUBLIC_SERVER_TIME = "public.server-time"

    # Administration
    ADMIN_DASHBOARD = "admin.dashboard"
    ADMIN_GET_USERS = "admin.get-users"
    ADMIN_CREATE_USER = "admin.create-user"
    ADMIN_DELETE_USER = "admin.delete-user"
    ADMIN_DEPOSIT_INR = "admin.deposit-inr"
    ADMIN_WITHDRAW_INR = "admin.withdraw-inr"
    ADMIN_GET_SETTINGS = "admin.get-settings"
    ADMIN_UPDATE_SETTINGS = "admin.update-settings"
    ADMIN_SYSTEM_STATUS = "admin.system-status"
