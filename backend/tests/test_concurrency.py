# Overview: Thread-based concurrency tests for stock and approval safeguards.

"""
Concurrency tests for the approval workflow.

Runs real threads against a file-backed SQLite database (in-memory
databases cannot be shared between connections), each thread in its own
application context and session.
"""
import os
import tempfile
import threading
import unittest

from app import create_app
from app.extensions import db
from app.models import Item, Transaction, User
from app.models.auth import ROLE_CASHIER, ROLE_USER
from app.models.catalog import ITEM_AVAILABLE, ITEM_OUT_OF_STOCK
from app.models.orders import TXN_APPROVED, TXN_COMPLETED, TXN_PENDING, TXN_REJECTED
from app.services import approval_service
from app.services.errors import OrderError
from app.services.transaction_service import OrderLine


class ConcurrencyTests(unittest.TestCase):
    STOCK = 4

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self.tmpdir.name, "concurrency.db")
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
            "SQLALCHEMY_ENGINE_OPTIONS": {"connect_args": {"timeout": 30}},
            "DB_RETRY_ATTEMPTS": 5,
        })

        with self.app.app_context():
            db.drop_all()
            db.create_all()

            cashier = User(name="Kasir", email="kasir@example.com", password_hash="dummy", role=ROLE_CASHIER)
            users = [
                User(name=f"User {i}", email=f"user{i}@example.com", password_hash="dummy", role=ROLE_USER)
                for i in range(8)
            ]
            db.session.add(cashier)
            db.session.add_all(users)
            db.session.commit()
            self.cashier_id = cashier.id
            self.user_ids = [user.id for user in users]

            item = Item(name="Nasi Goreng", stock_quantity=self.STOCK, unit_price=15000, status=ITEM_AVAILABLE)
            db.session.add(item)
            db.session.commit()
            self.item_id = item.id

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.drop_all()
            db.engine.dispose()
        self.tmpdir.cleanup()

    def _place_user_order(self, user_id: int, quantity: int) -> int:
        with self.app.app_context():
            transaction = approval_service.place_order(
                user_id,
                ROLE_USER,
                [OrderLine(self.item_id, quantity)],
                customer_name="Budi",
                customer_location="Meja 4",
            )
            return transaction.id

    def _run_concurrently(self, calls):
        """
        Start every call at once, each in its own thread, app context and
        session. Returns one (outcome, value) pair per call where outcome is
        "ok" or the OrderError code.
        """
        barrier = threading.Barrier(len(calls))
        results = []
        unexpected = []
        lock = threading.Lock()

        def worker(call):
            with self.app.app_context():
                try:
                    barrier.wait()
                    value = call()
                    outcome = ("ok", value)
                except OrderError as e:
                    outcome = (e.code, None)
                except Exception as e:
                    with lock:
                        unexpected.append(e)
                    return
                finally:
                    db.session.remove()
                with lock:
                    results.append(outcome)

        threads = [threading.Thread(target=worker, args=(call,)) for call in calls]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(unexpected, [])
        self.assertEqual(len(results), len(calls))
        return results

    def _item(self) -> Item:
        return db.session.get(Item, self.item_id, populate_existing=True)

    def test_concurrent_approvals_of_one_order(self):
        txn_id = self._place_user_order(self.user_ids[0], 3)

        def approve():
            return approval_service.approve(txn_id, ROLE_CASHIER, approver_id=self.cashier_id).status

        results = self._run_concurrently([approve] * 8)

        outcomes = [outcome for outcome, _ in results]
        self.assertEqual(outcomes.count("ok"), 1)
        self.assertEqual(outcomes.count("INVALID_STATE"), 7)

        with self.app.app_context():
            self.assertEqual(db.session.get(Transaction, txn_id).status, TXN_APPROVED)
            self.assertEqual(self._item().stock_quantity, self.STOCK - 3)

    def test_concurrent_approve_and_reject(self):
        txn_id = self._place_user_order(self.user_ids[0], 2)

        def approve():
            return approval_service.approve(txn_id, ROLE_CASHIER, approver_id=self.cashier_id).status

        def reject():
            return approval_service.reject(txn_id, ROLE_CASHIER, approver_id=self.cashier_id).status

        results = self._run_concurrently([approve, reject] * 4)

        winners = [value for outcome, value in results if outcome == "ok"]
        self.assertEqual(len(winners), 1)
        self.assertEqual(sum(1 for outcome, _ in results if outcome == "INVALID_STATE"), 7)

        with self.app.app_context():
            final = db.session.get(Transaction, txn_id).status
            self.assertEqual(final, winners[0])
            expected_stock = self.STOCK - 2 if final == TXN_APPROVED else self.STOCK
            self.assertIn(final, (TXN_APPROVED, TXN_REJECTED))
            self.assertEqual(self._item().stock_quantity, expected_stock)

    def test_concurrent_cashier_sales_never_oversell(self):
        def sell():
            return approval_service.place_order(
                self.cashier_id, ROLE_CASHIER, [OrderLine(self.item_id, 1)],
            ).id

        results = self._run_concurrently([sell] * 10)

        successes = [value for outcome, value in results if outcome == "ok"]
        failures = [outcome for outcome, _ in results if outcome != "ok"]
        self.assertEqual(len(successes), self.STOCK)
        # Late arrivals see either too little stock or an item already sold out
        for code in failures:
            self.assertIn(code, ("INSUFFICIENT_STOCK", "VALIDATION_ERROR"))

        with self.app.app_context():
            item = self._item()
            self.assertEqual(item.stock_quantity, 0)
            self.assertEqual(item.status, ITEM_OUT_OF_STOCK)
            completed = db.session.query(Transaction).filter_by(status=TXN_COMPLETED).count()
            self.assertEqual(completed, self.STOCK)

    def test_pending_orders_compete_for_stock_at_approval(self):
        txn_ids = [self._place_user_order(user_id, 1) for user_id in self.user_ids[:6]]

        calls = [
            (lambda txn_id=txn_id: approval_service.approve(
                txn_id, ROLE_CASHIER, approver_id=self.cashier_id,
            ).id)
            for txn_id in txn_ids
        ]
        results = self._run_concurrently(calls)

        outcomes = [outcome for outcome, _ in results]
        self.assertEqual(outcomes.count("ok"), self.STOCK)
        self.assertEqual(outcomes.count("INSUFFICIENT_STOCK"), len(txn_ids) - self.STOCK)

        with self.app.app_context():
            self.assertEqual(self._item().stock_quantity, 0)
            statuses = [db.session.get(Transaction, txn_id).status for txn_id in txn_ids]
            self.assertEqual(statuses.count(TXN_APPROVED), self.STOCK)
            self.assertEqual(statuses.count(TXN_PENDING), len(txn_ids) - self.STOCK)


if __name__ == "__main__":
    unittest.main()
