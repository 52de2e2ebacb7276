import threading
import unittest

from stock_dashboard.errors import DashboardApiError
from stock_dashboard.schemas.dashboard import SortConfig
from stock_dashboard.services.dashboard_state import DashboardStateManager
from stubs import FakeTimerFactory, StubGateway, quote


class TestInitialLoad(unittest.TestCase):
    def test_load_populates_tracked_quotes(self):
        gateway = StubGateway(initial=[quote("AAPL", 190.0), quote("MSFT", 410.0)])
        manager = DashboardStateManager(gateway, timer_factory=FakeTimerFactory())

        rows = manager.load_initial()

        snap = manager.snapshot()
        self.assertEqual([r.symbol for r in rows], ["AAPL", "MSFT"])
        self.assertEqual([r.symbol for r in snap.quotes], ["AAPL", "MSFT"])
        self.assertFalse(snap.loading)
        self.assertIsNone(snap.error)

    def test_load_drops_duplicate_rows(self):
        gateway = StubGateway(initial=[quote("AAPL", 1.0), quote("AAPL", 2.0)])
        manager = DashboardStateManager(gateway, timer_factory=FakeTimerFactory())

        manager.load_initial()

        self.assertEqual([r.price for r in manager.snapshot().quotes], [1.0])

    def test_total_failure_surfaces_error_and_leaves_list_empty(self):
        gateway = StubGateway(initial_error="HTTP error! status: 500")
        manager = DashboardStateManager(gateway, timer_factory=FakeTimerFactory())

        rows = manager.load_initial()

        snap = manager.snapshot()
        self.assertEqual(rows, [])
        self.assertEqual(snap.quotes, [])
        self.assertEqual(snap.error, "Failed to fetch initial stock data: HTTP error! status: 500")
        self.assertFalse(snap.loading)


class TestAddSymbol(unittest.TestCase):
    def setUp(self):
        self.timers = FakeTimerFactory()
        self.gateway = StubGateway(
            initial=[quote("AAPL", 190.0)],
            quotes={"NVDA": quote("NVDA", 880.0, 12.0, "+1.38%"), "IBM": quote("IBM", 170.0)},
        )
        self.manager = DashboardStateManager(self.gateway, highlight_window_sec=3.0, timer_factory=self.timers)
        self.manager.load_initial()

    def tearDown(self):
        self.manager.close()

    def test_duplicate_is_rejected_without_network_call(self):
        result = self.manager.add_symbol("aapl ")

        snap = self.manager.snapshot()
        self.assertIsNone(result)
        self.assertEqual(snap.add_error, "AAPL is already in the list.")
        self.assertEqual(len(snap.quotes), 1)
        self.assertEqual(self.gateway.quote_calls, [])

    def test_empty_input_is_rejected_without_network_call(self):
        self.manager.add_symbol("   ")

        self.assertEqual(self.manager.snapshot().add_error, "Please enter a stock symbol.")
        self.assertEqual(self.gateway.quote_calls, [])

    def test_successful_add_appends_clears_input_and_highlights(self):
        self.manager.set_input(" nvda")

        added = self.manager.add_symbol(" nvda")

        snap = self.manager.snapshot()
        self.assertEqual(added.symbol, "NVDA")
        self.assertEqual(self.gateway.quote_calls, ["NVDA"])
        self.assertEqual([r.symbol for r in snap.quotes], ["AAPL", "NVDA"])
        self.assertEqual(snap.new_symbol, "")
        self.assertIsNone(snap.add_error)
        self.assertFalse(snap.is_adding)
        self.assertEqual(snap.recently_added, {"NVDA"})
        self.assertEqual(self.timers.timers[0].delay, 3.0)

        self.timers.timers[0].fire()

        self.assertEqual(self.manager.snapshot().recently_added, set())
        self.assertFalse(self.manager.is_recently_added("NVDA"))

    def test_failed_add_surfaces_gateway_message_without_mutation(self):
        self.manager.set_input("zzzz")

        result = self.manager.add_symbol("zzzz")

        snap = self.manager.snapshot()
        self.assertIsNone(result)
        self.assertEqual(snap.add_error, "Failed to add ZZZZ. Status: 404 - Symbol 'ZZZZ' not found or invalid.")
        self.assertEqual([r.symbol for r in snap.quotes], ["AAPL"])
        self.assertEqual(snap.new_symbol, "zzzz")
        self.assertEqual(snap.recently_added, set())
        self.assertFalse(snap.is_adding)

    def test_failed_add_without_message_uses_fallback(self):
        self.gateway.quotes["EMPTY"] = DashboardApiError("")

        self.manager.add_symbol("empty")

        self.assertEqual(self.manager.snapshot().add_error, "Failed to add stock EMPTY.")

    def test_set_input_clears_add_error(self):
        self.manager.add_symbol("")
        self.manager.set_input("I")

        self.assertIsNone(self.manager.snapshot().add_error)

    def test_is_adding_while_request_in_flight(self):
        seen = []
        original = self.gateway.fetch_quote

        def fetch_and_observe(symbol):
            seen.append(self.manager.snapshot().is_adding)
            return original(symbol)

        self.gateway.fetch_quote = fetch_and_observe
        self.manager.add_symbol("IBM")

        self.assertEqual(seen, [True])
        self.assertFalse(self.manager.snapshot().is_adding)

    def test_overlapping_adds_both_land(self):
        release = {"NVDA": threading.Event(), "IBM": threading.Event()}
        original = self.gateway.fetch_quote

        def slow_fetch(symbol):
            release[symbol].wait(2.0)
            return original(symbol)

        self.gateway.fetch_quote = slow_fetch
        workers = [threading.Thread(target=self.manager.add_symbol, args=(s,)) for s in ("NVDA", "IBM")]
        for w in workers:
            w.start()
        release["IBM"].set()
        workers[1].join(2.0)
        release["NVDA"].set()
        workers[0].join(2.0)

        snap = self.manager.snapshot()
        self.assertEqual([r.symbol for r in snap.quotes], ["AAPL", "IBM", "NVDA"])
        self.assertEqual(snap.recently_added, {"IBM", "NVDA"})
        self.assertFalse(snap.is_adding)

    def test_close_cancels_highlights_and_ignores_late_results(self):
        self.manager.add_symbol("NVDA")
        self.manager.close()

        self.assertTrue(all(t.cancelled for t in self.timers.timers))
        self.assertEqual(self.manager.snapshot().recently_added, set())

        self.manager.add_symbol("IBM")
        self.assertEqual([r.symbol for r in self.manager.snapshot().quotes], ["AAPL", "NVDA"])

    def test_unexpected_gateway_error_still_clears_is_adding(self):
        self.gateway.quotes["BOOM"] = RuntimeError("boom")

        with self.assertRaises(RuntimeError):
            self.manager.add_symbol("boom")

        snap = self.manager.snapshot()
        self.assertFalse(snap.is_adding)
        self.assertEqual([r.symbol for r in snap.quotes], ["AAPL"])
        self.assertEqual(snap.recently_added, set())

        # the next add is not blocked by a leaked in-flight count
        self.manager.add_symbol("IBM")
        self.assertFalse(self.manager.snapshot().is_adding)
        self.assertEqual([r.symbol for r in self.manager.snapshot().quotes], ["AAPL", "IBM"])


class TestInitialLoadUnexpectedError(unittest.TestCase):
    def test_unexpected_error_still_clears_loading(self):
        gateway = StubGateway()

        def fail():
            raise RuntimeError("boom")

        gateway.fetch_initial = fail
        manager = DashboardStateManager(gateway, timer_factory=FakeTimerFactory())

        with self.assertRaises(RuntimeError):
            manager.load_initial()

        snap = manager.snapshot()
        self.assertFalse(snap.loading)
        self.assertEqual(snap.quotes, [])


class TestSortBy(unittest.TestCase):
    def setUp(self):
        gateway = StubGateway(
            initial=[quote("MSFT", 410.0), quote("AAPL", None), quote("IBM", 170.0)],
        )
        self.manager = DashboardStateManager(gateway, timer_factory=FakeTimerFactory())
        self.manager.load_initial()

    def test_default_is_symbol_ascending(self):
        self.assertEqual(self.manager.snapshot().sort_config, SortConfig(key="symbol", direction="ascending"))
        self.assertEqual([r.symbol for r in self.manager.sorted_quotes()], ["AAPL", "IBM", "MSFT"])

    def test_clicking_same_key_toggles_direction(self):
        config = self.manager.sort_by("symbol")
        self.assertEqual(config.direction, "descending")
        self.assertEqual([r.symbol for r in self.manager.sorted_quotes()], ["MSFT", "IBM", "AAPL"])

        config = self.manager.sort_by("symbol")
        self.assertEqual(config.direction, "ascending")

    def test_new_key_resets_to_ascending_with_absent_first(self):
        self.manager.sort_by("symbol")

        config = self.manager.sort_by("price")

        self.assertEqual(config, SortConfig(key="price", direction="ascending"))
        self.assertEqual([r.symbol for r in self.manager.sorted_quotes()], ["AAPL", "IBM", "MSFT"])

        self.manager.sort_by("price")
        self.assertEqual([r.symbol for r in self.manager.sorted_quotes()], ["AAPL", "MSFT", "IBM"])

    def test_sorting_never_reorders_tracked_list(self):
        self.manager.sort_by("price")
        self.manager.sorted_quotes()

        self.assertEqual([r.symbol for r in self.manager.snapshot().quotes], ["MSFT", "AAPL", "IBM"])


if __name__ == "__main__":
    unittest.main()
