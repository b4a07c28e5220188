# boutique/models/__init__.py
from .common import PaymentMode, Account, account_for_mode, generate_custom_id
from .user import User, UserRole
from .order import Order, OrderItem, OrderPayment, WorkStatus, DeliveryStatus, PaymentStatus
from .expense import Expense
from .transaction import FundTransaction, TransactionType, FundMode
from .balance import Balance, BALANCE_ID
