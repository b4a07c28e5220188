from .base import LedgerStorage, OrderQuery, ExpenseQuery, TransactionQuery
from .memory import InMemoryStorage
from .sql import SqlAlchemyStorage
