#!/usr/bin/env python3

from __future__ import annotations

import random
import unittest

from packages.fairsim_core.sim.movement import move_agent, move_agent_randomly, walkable_neighbors
from packages.fairsim_core.sim.state import STUDENT, SpatialGrid


class MovementTests(unittest.TestCase):
    def setUp(self) -> None:
        self.grid = SpatialGrid(10)
        agent = self.grid.add_agent(5, 5, STUDENT)
        assert agent is not None
        self.agent = agent

    def test_move_to_free_neighbour(self) -> None:
        self.assertTrue(move_agent(self.grid, self.agent, 5, 6))
        self.assertEqual(self.agent.position, (5, 6))
        self.assertEqual(self.agent.distance_traveled, 1)
        self.assertTrue(self.grid.is_walkable(5, 5))

    def test_blocked_targets_are_rejected(self) -> None:
        self.grid.add_obstacle(5, 4)
        self.grid.add_agent(4, 5, STUDENT)
        self.assertFalse(move_agent(self.grid, self.agent, 5, 4))
        self.assertFalse(move_agent(self.grid, self.agent, 4, 5))
        self.assertFalse(move_agent(self.grid, self.agent, 10, 5))
        self.assertEqual(self.agent.position, (5, 5))
        self.assertEqual(self.agent.distance_traveled, 0)

    def test_agent_in_conversation_does_not_move(self) -> None:
        self.agent.in_conversation = True
        self.assertFalse(move_agent_randomly(self.grid, self.agent, rng=random.Random(1)))
        self.assertFalse(move_agent(self.grid, self.agent, 5, 6))
        self.assertEqual(self.agent.position, (5, 5))

    def test_custom_busy_check_is_honoured(self) -> None:
        moved = move_agent_randomly(self.grid, self.agent, rng=random.Random(1), is_busy=lambda agent: True)
        self.assertFalse(moved)
        self.assertEqual(self.agent.position, (5, 5))

    def test_boxed_in_agent_stays_put(self) -> None:
        for x, y in ((5, 4), (5, 6), (4, 5), (6, 5)):
            self.grid.add_obstacle(x, y)
        self.assertEqual(walkable_neighbors(self.grid, self.agent), [])
        self.assertFalse(move_agent_randomly(self.grid, self.agent, rng=random.Random(1)))
        self.assertEqual(self.agent.distance_traveled, 0)

    def test_random_move_picks_a_cardinal_neighbour(self) -> None:
        rng = random.Random(42)
        for _ in range(25):
            before = self.agent.position
            self.assertTrue(move_agent_randomly(self.grid, self.agent, rng=rng))
            dx = abs(self.agent.x - before[0])
            dy = abs(self.agent.y - before[1])
            self.assertEqual(dx + dy, 1)
            self.assertTrue(self.grid.is_valid_position(self.agent.x, self.agent.y))
        self.assertEqual(self.agent.distance_traveled, 25)

    def test_only_walkable_option_is_taken(self) -> None:
        for x, y in ((5, 4), (5, 6), (4, 5)):
            self.grid.add_obstacle(x, y)
        self.assertTrue(move_agent_randomly(self.grid, self.agent, rng=random.Random(3)))
        self.assertEqual(self.agent.position, (6, 5))


if __name__ == "__main__":
    unittest.main()
