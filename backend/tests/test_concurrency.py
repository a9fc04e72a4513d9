# Overview: Threaded confirmation races against a file-backed SQLite database.

"""
Concurrency tests for order confirmation and gift claims.

Run with:
    pytest backend/tests/test_concurrency.py
"""
import os
import tempfile
import threading
import unittest

from giftgrab import create_app
from giftgrab.errors import AlreadyConfirmedOrNotFound, PartialClaimFailure
from giftgrab.extensions import db
from giftgrab.models import ORDER_COMPLETE, Gift, Order, Person, SourceFormat
from giftgrab.services import claim_service, order_service


class ConfirmationRaceTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self.tmpdir.name, "concurrency.db")
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
            "GIFTGRAB_RETRY_ATTEMPTS": 6,
            "GIFTGRAB_NOTIFY_ON_CONFIRM": False,
        })

        with self.app.app_context():
            db.drop_all()
            db.create_all()

            people = {}
            for key, first in (("owner", "Alice"), ("applicant", "Bob"),
                               ("other_applicant", "Dan"), ("approver", "Carol"),
                               ("second_approver", "Erin")):
                person = Person(first_name=first, last_name="Tester",
                                source_format=SourceFormat.BASIC_NAME.value)
                db.session.add(person)
                people[key] = person
            db.session.commit()
            self.people = {key: p.public_id for key, p in people.items()}

            gift = Gift(owner_id=people["owner"].id)
            db.session.add(gift)
            db.session.commit()
            self.gift_id = gift.id
            self.gift_public_id = gift.public_id

            first = order_service.create_order(people["applicant"], [gift], "race-1", "code-1").value
            second = order_service.create_order(people["other_applicant"], [gift], "race-2", "code-2").value
            self.first_order = first.public_id
            self.second_order = second.public_id

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.drop_all()
            db.session.remove()
            db.engine.dispose()
        self.tmpdir.cleanup()

    def _race(self, jobs):
        """Run (order_public_id, approver_public_id) confirmations in parallel."""
        results = []
        errors = []
        lock = threading.Lock()
        start = threading.Barrier(len(jobs))

        def worker(order_pid, approver_pid):
            with self.app.app_context():
                try:
                    start.wait()
                    outcome = order_service.confirm_order(order_pid, approver_pid)
                    with lock:
                        results.append((order_pid, outcome))
                except Exception as exc:
                    with lock:
                        errors.append(exc)
                finally:
                    db.session.remove()

        threads = [threading.Thread(target=worker, args=job) for job in jobs]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        return results, errors

    def test_same_order_confirmed_exactly_once(self):
        approvers = [self.people["approver"], self.people["second_approver"]] * 2
        results, errors = self._race([(self.first_order, a) for a in approvers])

        self.assertFalse(errors)
        successes = [r for _, r in results if r.is_success]
        conflicts = [r for _, r in results if r.is_failure]
        self.assertEqual(len(successes), 1)
        self.assertEqual(len(conflicts), len(approvers) - 1)
        for failure in conflicts:
            self.assertIsInstance(failure.error, AlreadyConfirmedOrNotFound)

        with self.app.app_context():
            order = db.session.query(Order).filter_by(public_id=self.first_order).one()
            gift = db.session.get(Gift, self.gift_id)
            self.assertEqual(order.status, ORDER_COMPLETE)
            self.assertFalse(order.reconciliation_required)
            self.assertEqual(gift.order_id, order.id)
            self.assertEqual(order.version_id, 2)

    def test_orders_sharing_a_gift_never_both_succeed(self):
        results, errors = self._race([
            (self.first_order, self.people["approver"]),
            (self.second_order, self.people["second_approver"]),
        ])

        self.assertFalse(errors)
        outcomes = dict(results)
        successes = [pid for pid, r in outcomes.items() if r.is_success]
        partials = [pid for pid, r in outcomes.items()
                    if r.is_failure and isinstance(r.error, PartialClaimFailure)]
        self.assertEqual(len(successes), 1)
        self.assertEqual(len(partials), 1)
        self.assertEqual(set(outcomes[partials[0]].error.failed), {self.gift_public_id})

        with self.app.app_context():
            winner = db.session.query(Order).filter_by(public_id=successes[0]).one()
            loser = db.session.query(Order).filter_by(public_id=partials[0]).one()
            gift = db.session.get(Gift, self.gift_id)

            self.assertEqual(gift.order_id, winner.id)
            self.assertEqual(gift.applicant_id, winner.applicant_id)
            self.assertTrue(loser.reconciliation_required)
            self.assertEqual(claim_service.find_claim_pair_violations(), [])
            self.assertEqual(order_service.find_unflagged_incomplete_orders(), [])


if __name__ == "__main__":
    unittest.main()
