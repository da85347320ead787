"""
Unit Tests for the Sponsorship Chain Walker

Tests verify the upline order, the depth bound and cycle safety.
"""

from dataclasses import replace

import pytest

from revshare.calculators import SponsorChainWalker


class TestWalkUpline:
    """Test upline traversal over sponsor pointers."""

    @pytest.fixture
    def walker(self, store):
        return SponsorChainWalker(store.get_agent)

    def _build_line(self, make_agent, length):
        """Root first; each agent sponsored by the previous one."""
        agents = [make_agent()]
        for _ in range(length - 1):
            agents.append(make_agent(sponsor=agents[-1]))
        return agents

    def test_root_agent_has_empty_upline(self, walker, make_agent):
        root = make_agent()
        assert walker.walk_upline(root.id) == []

    def test_nearest_sponsor_first(self, walker, make_agent):
        a, b, c = self._build_line(make_agent, 3)
        assert walker.walk_upline(c.id) == [b.id, a.id]

    def test_starting_agent_not_included(self, walker, make_agent):
        a, b = self._build_line(make_agent, 2)
        assert b.id not in walker.walk_upline(b.id)

    def test_chain_bounded_at_five(self, walker, make_agent):
        """Eight levels deep still returns only the nearest five."""
        line = self._build_line(make_agent, 9)
        chain = walker.walk_upline(line[-1].id)

        assert len(chain) == 5
        assert chain == [a.id for a in reversed(line[3:8])]

    def test_max_depth_above_five_is_clamped(self, walker, make_agent):
        line = self._build_line(make_agent, 9)
        assert len(walker.walk_upline(line[-1].id, max_depth=50)) == 5

    def test_smaller_max_depth_respected(self, walker, make_agent):
        line = self._build_line(make_agent, 4)
        assert walker.walk_upline(line[-1].id, max_depth=2) == [line[2].id, line[1].id]

    def test_missing_agent_returns_empty(self, walker):
        assert walker.walk_upline(999) == []

    def test_missing_sponsor_record_ends_walk(self, walker, store, make_agent):
        a, b, c = self._build_line(make_agent, 3)
        store.delete_agent(a.id)

        # b still points at a; a's record is gone so nothing above it is known
        assert walker.walk_upline(c.id) == [b.id, a.id]

    def test_cycle_terminates(self, walker, store, make_agent):
        """A corrupted graph (a <-> b) must not loop forever."""
        a, b = self._build_line(make_agent, 2)
        store.save_agent(replace(a, sponsor_id=b.id))

        chain = walker.walk_upline(b.id)

        assert chain == [a.id]
        assert len(chain) <= 5

    def test_cycle_never_repeats_an_agent(self, walker, store, make_agent):
        a, b, c = self._build_line(make_agent, 3)
        store.save_agent(replace(a, sponsor_id=c.id))

        chain = walker.walk_upline(c.id)

        assert chain == [b.id, a.id]
        assert len(set(chain)) == len(chain)
