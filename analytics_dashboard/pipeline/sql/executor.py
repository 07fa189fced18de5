"""
SQL Executor
Backends that turn a (pre-checked) SQL string into rows
"""
import logging
import random
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy import create_engine, text as sqltext
from sqlalchemy.engine import Connection, Engine

logger = logging.getLogger(__name__)


class SimulatedExecutionError(RuntimeError):
    pass


@dataclass
class BackendResult:
    columns: List[str]
    data: List[Dict[str, Any]]
    # Execution time measured by the backend itself, when it reports one
    reported_execution_time: Optional[int] = None
    meta: Dict[str, Any] = field(default_factory=dict)


class QueryBackend(Protocol):
    def execute(self, sql: str) -> BackendResult: ...


def execute_readonly_on_conn(conn: Connection, sql: str) -> Dict[str, Any]:
    """
    Execute a read-only SQL query and return results as JSON-serializable dict
    """
    rs = conn.execute(sqltext(sql))
    cols = list(rs.keys())
    rows = [dict(zip(cols, row)) for row in rs]
    return {"columns": cols, "data": rows}


class ReadOnlySqlBackend:
    """Runs queries against ANALYTICS_DB_URL; the transaction is always rolled back"""

    def __init__(self, url: Optional[str] = None, engine: Optional[Engine] = None):
        if engine is None and not url:
            raise ValueError("ReadOnlySqlBackend needs a url or an engine")
        self.engine = engine or create_engine(url, pool_pre_ping=True)

    def execute(self, sql: str) -> BackendResult:
        with self.engine.connect() as conn:
            try:
                result = execute_readonly_on_conn(conn, sql)
            finally:
                conn.rollback()
        return BackendResult(columns=result["columns"], data=result["data"])


class SampleDataBackend:
    """
    Returns sample datasets shaped after the canned query templates.

    The dataset is chosen from table/column words in the SQL. A configurable
    share of calls fails to mimic an unreliable database connection.
    """

    def __init__(self, failure_rate: float = 0.0, rng: Optional[random.Random] = None, today: Optional[date] = None):
        self.failure_rate = failure_rate
        self.rng = rng or random.Random()
        self.today = today

    def execute(self, sql: str) -> BackendResult:
        q = sql.lower()

        if "orders" in q and "month" in q:
            columns, data = self._monthly_revenue()
        elif "products" in q and "category" in q:
            columns, data = self._categories()
        elif "regions" in q and "customers" in q:
            columns, data = self._regions()
        elif "date" in q and "daily" in q:
            columns, data = self._daily_trend()
        else:
            columns, data = self._generic()

        if self.rng.random() < self.failure_rate:
            raise SimulatedExecutionError("Simulated database connection error")

        execution_time = self.rng.randint(100, 2100)
        logger.debug(f"Sample backend produced {len(data)} rows in simulated {execution_time}ms")
        return BackendResult(columns=columns, data=data, reported_execution_time=execution_time)

    def _monthly_revenue(self):
        months = ["2024-01", "2024-02", "2024-03", "2024-04", "2024-05", "2024-06"]
        data = [
            {
                "month": month,
                "total_revenue": self.rng.randint(20000, 69999),
                "order_count": self.rng.randint(100, 299),
            }
            for month in months
        ]
        return ["month", "total_revenue", "order_count"], data

    def _categories(self):
        categories = ["Elektronik", "Kleidung", "Bücher", "Sport", "Haus & Garten", "Spielwaren"]
        data = [
            {
                "category": category,
                "product_count": self.rng.randint(50, 549),
                "avg_price": self.rng.randint(25, 224),
                "total_sales": self.rng.randint(1000, 10999),
            }
            for category in categories
        ]
        return ["category", "product_count", "avg_price", "total_sales"], data

    def _regions(self):
        regions = ["Nord", "Süd", "Ost", "West", "Zentral"]
        data = [
            {
                "region_name": region,
                "customer_count": self.rng.randint(200, 1199),
                "total_revenue": self.rng.randint(30000, 129999),
                "avg_order_value": self.rng.randint(50, 199),
            }
            for region in regions
        ]
        return ["region_name", "customer_count", "total_revenue", "avg_order_value"], data

    def _daily_trend(self):
        start = (self.today or date.today()) - timedelta(days=30)
        data: List[Dict[str, Any]] = []
        for i in range(30):
            daily_orders = self.rng.randint(20, 69)
            data.append({
                "date": (start + timedelta(days=i)).isoformat(),
                "daily_orders": daily_orders,
                "daily_revenue": int(daily_orders * self.rng.uniform(50, 150)),
                "avg_order_value": self.rng.randint(40, 119),
                "prev_day_orders": data[i - 1]["daily_orders"] if i > 0 else None,
            })
        return ["date", "daily_orders", "daily_revenue", "avg_order_value", "prev_day_orders"], data

    def _generic(self):
        metrics = ["Verkäufe", "Besucher", "Conversions", "Returns", "Reviews"]
        data = [
            {
                "metric": metric,
                "count": self.rng.randint(100, 1099),
                "average_value": self.rng.randint(50, 549),
            }
            for metric in metrics
        ]
        return ["metric", "count", "average_value"], data
