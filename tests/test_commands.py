"""Tests for isotown.commands - the command queue."""

import pytest

from isotown import CollectCoins, CommandQueue, PlaceBuilding, SetTaxRate


class TestCommandQueue:
    def test_fifo(self):
        q = CommandQueue()
        seen = []
        q.handle(SetTaxRate, lambda c: seen.append(c.rate))
        for rate in (0.01, 0.02, 0.03):
            q.enqueue(SetTaxRate(rate))
        assert q.pending() == 3
        q.drain()
        assert seen == [0.01, 0.02, 0.03]
        assert q.pending() == 0

    def test_results_paired_with_commands(self):
        q = CommandQueue()
        q.handle(CollectCoins, lambda c: c.x + c.y)
        q.handle(PlaceBuilding, lambda c: c.building)
        q.enqueue(CollectCoins(1, 2))
        q.enqueue(PlaceBuilding("HOUSE", 0, 0))
        assert q.drain() == [(CollectCoins(1, 2), 3), (PlaceBuilding("HOUSE", 0, 0), "HOUSE")]

    def test_handler_may_enqueue(self):
        q = CommandQueue()
        order = []

        def on_tax(cmd):
            order.append(cmd.rate)
            if cmd.rate < 0.02:
                q.enqueue(SetTaxRate(cmd.rate + 0.01))

        q.handle(SetTaxRate, on_tax)
        q.enqueue(SetTaxRate(0.0))
        q.drain()
        assert order == [0.0, 0.01, 0.02]

    def test_unregistered_type(self):
        q = CommandQueue()
        q.enqueue(SetTaxRate(0.05))
        with pytest.raises(TypeError, match="SetTaxRate"):
            q.drain()

    def test_clear(self):
        q = CommandQueue()
        q.enqueue(SetTaxRate(0.05))
        q.clear()
        assert q.drain() == []

    def test_later_handler_wins(self):
        q = CommandQueue()
        q.handle(SetTaxRate, lambda c: "first")
        q.handle(SetTaxRate, lambda c: "second")
        q.enqueue(SetTaxRate(0.0))
        assert q.drain()[0][1] == "second"
