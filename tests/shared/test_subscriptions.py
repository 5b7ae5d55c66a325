import unittest

from src.shared.service_state import OfflineStatus, ServiceState
from src.shared.subscriptions import ListenerRegistry


class TestListenerRegistry(unittest.TestCase):
    def test_dispatch_in_registration_order(self):
        registry: ListenerRegistry[str] = ListenerRegistry()
        order = []
        registry.add("a", lambda p: order.append(("first", p)))
        registry.add("a", lambda p: order.append(("second", p)))
        registry.add("b", lambda p: order.append(("other", p)))

        delivered = registry.dispatch("a", 1)

        self.assertEqual(delivered, 2)
        self.assertEqual(order, [("first", 1), ("second", 1)])

    def test_unsubscribe_is_idempotent(self):
        registry: ListenerRegistry[str] = ListenerRegistry()
        subscription = registry.add("a", lambda p: None)
        self.assertTrue(subscription.active)

        subscription.unsubscribe()
        subscription.unsubscribe()

        self.assertFalse(subscription.active)
        self.assertEqual(registry.count("a"), 0)
        self.assertIn("released", repr(subscription))

    def test_non_callable_is_rejected(self):
        registry: ListenerRegistry[str] = ListenerRegistry()
        with self.assertRaises(TypeError):
            registry.add("a", "not callable")

    def test_listener_may_unsubscribe_itself_during_dispatch(self):
        registry: ListenerRegistry[str] = ListenerRegistry()
        calls = []
        holder = {}

        def once(payload):
            calls.append(payload)
            holder["sub"].unsubscribe()

        holder["sub"] = registry.add("a", once)
        registry.dispatch("a", 1)
        registry.dispatch("a", 2)

        self.assertEqual(calls, [1])


class TestServiceStateEnums(unittest.TestCase):
    def test_offline_status_parse(self):
        self.assertEqual(OfflineStatus.parse("offline"), OfflineStatus.OFFLINE)
        self.assertEqual(OfflineStatus.parse(" OFFLINE "), OfflineStatus.OFFLINE)
        self.assertEqual(OfflineStatus.parse("online"), OfflineStatus.ONLINE)
        self.assertEqual(OfflineStatus.parse("whatever"), OfflineStatus.ONLINE)
        self.assertEqual(OfflineStatus.parse(OfflineStatus.OFFLINE), OfflineStatus.OFFLINE)

    def test_settled_states(self):
        self.assertTrue(ServiceState.RUNNING.is_settled())
        self.assertTrue(ServiceState.STOPPED.is_settled())
        self.assertFalse(ServiceState.UNKNOWN.is_settled())


if __name__ == "__main__":
    unittest.main()
