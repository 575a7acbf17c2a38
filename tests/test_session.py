"""
Tests for the multi-board session: scheduling, control modes, capabilities and resets.
"""

import unittest

import numpy as np

from idletris.core.board import ControlMode
from idletris.core.engine import Command
from idletris.core.events import SessionListener
from idletris.core.pieces import PieceType, Placement, create_piece
from idletris.exceptions import BoardNotFoundError, IdletrisError
from idletris.session import GameSession, SessionConfig


class FakeClock:

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class RecordingListener(SessionListener):

    def __init__(self):
        self.snapshots = []
        self.lines = []
        self.next_pieces = []
        self.game_overs = []
        self.resets = []
        self.mode_changes = []

    def on_board_updated(self, snapshot):
        self.snapshots.append(snapshot)

    def on_lines_cleared(self, board_index, lines):
        self.lines.append((board_index, lines))

    def on_next_piece_changed(self, board_index, piece_type):
        self.next_pieces.append((board_index, piece_type))

    def on_game_over(self, board_index):
        self.game_overs.append(board_index)

    def on_board_reset(self, board_index):
        self.resets.append(board_index)

    def on_control_mode_changed(self, board_index, mode):
        self.mode_changes.append((board_index, mode))


class SessionTestCase(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.session = GameSession(SessionConfig(random_seed=11), clock=self.clock)
        self.listener = RecordingListener()
        self.session.add_listener(self.listener)

    def block_spawn(self, index):
        """Fill every column but the last so the next spawn collides without clearing rows."""
        self.session.board(index).grid[:, :9] = 1
        self.session.engine(index).spawn_piece()

    def max_out(self, index, session=None):
        """Hire, unlock hard drop and upgrade speed to the top so the next board can unlock."""
        session = session or self.session
        session.hire_agent(index)
        session.set_ai_hard_drop(index)
        while session.upgrade_ai_speed(index):
            pass


class TestSessionSetup(SessionTestCase):

    def test_starts_with_one_human_board(self):
        self.assertEqual(len(self.session.boards), 1)
        self.assertEqual(self.session.active_board_index, 0)
        board = self.session.active_board
        self.assertEqual(board.control_mode, ControlMode.HUMAN)
        self.assertIsNotNone(board.current_piece)
        self.assertIsNotNone(board.next_piece_type)
        self.assertFalse(self.session.is_game_over)

    def test_add_board_moves_focus(self):
        self.max_out(0)
        board = self.session.add_board()
        self.assertEqual(board.index, 1)
        self.assertEqual(self.session.active_board_index, 1)
        self.assertIsNotNone(board.current_piece)

    def test_add_board_hands_previous_board_to_its_agent(self):
        self.max_out(0)
        self.session.set_control_mode(0, ControlMode.HUMAN)
        self.session.add_board()
        self.assertEqual(self.session.board(0).control_mode, ControlMode.AUTONOMOUS)
        self.assertEqual(self.session.board(1).control_mode, ControlMode.HUMAN)

    def test_add_board_requires_maxed_out_last_board(self):
        board = self.session.board(0)
        self.assertFalse(self.session.can_add_board())
        self.assertIsNone(self.session.add_board())

        self.session.hire_agent(0)
        self.session.set_ai_hard_drop(0)
        for _ in range(4):
            self.session.upgrade_ai_speed(0)
        self.assertFalse(board.is_maxed_out(5))
        self.assertIsNone(self.session.add_board())

        self.session.upgrade_ai_speed(0)
        self.assertTrue(board.is_maxed_out(5))
        self.assertTrue(self.session.can_add_board())
        self.assertIsNotNone(self.session.add_board())
        self.assertEqual(len(self.session.boards), 2)

        # The new board has to be maxed out in turn
        self.assertFalse(self.session.can_add_board())
        self.assertIsNone(self.session.add_board())

    def test_hard_drop_is_part_of_maxing_out(self):
        self.max_out(0)
        self.session.set_ai_hard_drop(0, False)
        self.assertIsNone(self.session.add_board())
        self.assertEqual(len(self.session.boards), 1)

    def test_board_limit(self):
        session = GameSession(SessionConfig(max_boards=3), clock=self.clock)
        for _ in range(2):
            self.max_out(session.active_board_index, session)
            self.assertIsNotNone(session.add_board())
        self.max_out(2, session)
        self.assertFalse(session.can_add_board())
        self.assertIsNone(session.add_board())
        self.assertEqual(len(session.boards), 3)
        self.assertEqual(session.active_board_index, 2)

    def test_unknown_board_index(self):
        for call in (lambda: self.session.reset_board(5),
                     lambda: self.session.hire_agent(-1),
                     lambda: self.session.force_next_piece(1, PieceType.I),
                     lambda: self.session.set_control_mode(3, ControlMode.HUMAN)):
            with self.assertRaises(BoardNotFoundError):
                call()

        with self.assertRaises(IndexError):
            self.session.board(7)
        with self.assertRaises(IdletrisError):
            self.session.upgrade_ai_speed(2)


class TestTick(SessionTestCase):

    def test_gravity_on_focused_human_board(self):
        piece = self.session.active_board.current_piece
        self.session.tick(now=1000.0)
        self.assertEqual(piece.y, 0)
        self.session.tick(now=1001.0)
        self.assertEqual(piece.y, 1)
        self.session.tick(now=1500.0)
        self.assertEqual(piece.y, 1)
        self.session.tick(now=2002.0)
        self.assertEqual(piece.y, 2)

    def test_unfocused_human_board_does_not_fall(self):
        self.max_out(0)
        self.session.add_board()
        self.session.set_control_mode(0, ControlMode.HUMAN)
        piece = self.session.board(0).current_piece
        self.session.tick(now=5000.0)
        self.assertEqual(piece.y, 0)
        self.assertEqual(self.session.board(1).current_piece.y, 1)

    def test_tick_notifies_every_board(self):
        self.max_out(0)
        self.session.add_board()
        self.session.tick(now=10.0)
        self.assertEqual([s.index for s in self.listener.snapshots], [0, 1])

    def test_tick_uses_clock_by_default(self):
        piece = self.session.active_board.current_piece
        self.clock.now = 1200.0
        self.session.tick()
        self.assertEqual(piece.y, 1)

    def test_pause(self):
        piece = self.session.active_board.current_piece
        self.session.pause()
        self.session.tick(now=5000.0)
        self.assertEqual(piece.y, 0)
        self.assertEqual(self.listener.snapshots, [])
        self.assertFalse(self.session.handle_command(Command.MOVE_LEFT))

        self.session.resume()
        self.session.tick(now=5000.0)
        self.assertEqual(piece.y, 1)

    def test_autonomous_play_keeps_pieces_clear_of_locked_cells(self):
        self.session.hire_agent(0)
        self.session.set_ai_hard_drop(0)
        board = self.session.board(0)

        now = 0.0
        for _ in range(1500):
            now += 301.0
            self.session.tick(now=now)
            if board.current_piece is not None:
                for x, y in board.current_piece.get_occupied_cells():
                    self.assertTrue(0 <= x < board.width and y < board.height)
                    if y >= 0:
                        self.assertEqual(board.grid[y, x], 0)
            if self.session.is_game_over:
                break

        self.assertGreaterEqual(board.pieces_locked, 10)
        self.assertEqual(self.session.total_lines_cleared, board.lines_cleared)

    def test_seeded_sessions_are_reproducible(self):
        grids = []
        for _ in range(2):
            session = GameSession(SessionConfig(random_seed=99), clock=FakeClock())
            session.hire_agent(0)
            session.set_ai_hard_drop(0)
            for tick in range(1, 400):
                session.tick(now=tick * 301.0)
            grids.append(session.board(0).grid.copy())
        np.testing.assert_array_equal(grids[0], grids[1])


class TestCommands(SessionTestCase):

    def test_move_commands(self):
        board = self.session.active_board
        board.current_piece = create_piece(PieceType.T, board.width)
        self.assertTrue(self.session.handle_command(Command.MOVE_LEFT))
        self.assertEqual(board.current_piece.x, 3)
        self.assertTrue(self.session.handle_command(Command.ROTATE))

    def test_soft_drop_restarts_gravity_timer(self):
        board = self.session.active_board
        self.clock.now = 800.0
        self.assertTrue(self.session.handle_command(Command.SOFT_DROP))
        self.assertEqual(board.current_piece.y, 1)
        self.assertEqual(board.last_drop_time, 800.0)
        self.session.tick(now=1500.0)
        self.assertEqual(board.current_piece.y, 1)

    def test_hard_drop_gated_by_unlock(self):
        board = self.session.active_board
        self.assertFalse(self.session.handle_command(Command.HARD_DROP))
        self.assertEqual(board.pieces_locked, 0)

        self.session.set_hard_drop_unlocked()
        self.assertTrue(self.session.handle_command(Command.HARD_DROP))
        self.assertEqual(board.pieces_locked, 1)

    def test_commands_ignored_on_autonomous_board(self):
        self.session.hire_agent(0)
        piece = self.session.active_board.current_piece.copy()
        self.assertFalse(self.session.handle_command(Command.MOVE_LEFT))
        self.assertEqual(self.session.active_board.current_piece, piece)

    def test_lines_cleared_reach_listener(self):
        board = self.session.active_board
        board.grid[19, :] = 1
        board.grid[19, 4:6] = 0
        board.current_piece = create_piece(PieceType.O, board.width)
        self.session.set_hard_drop_unlocked()

        self.session.handle_command(Command.HARD_DROP)
        self.assertEqual(self.listener.lines, [(0, 1)])
        self.assertEqual(self.session.total_lines_cleared, 1)
        self.assertEqual(board.lines_cleared, 1)


class TestControlModes(SessionTestCase):

    def test_hire_agent(self):
        self.session.hire_agent(0)
        board = self.session.board(0)
        self.assertTrue(board.ai_hired)
        self.assertEqual(board.control_mode, ControlMode.AUTONOMOUS)
        self.assertEqual(self.listener.mode_changes, [(0, ControlMode.AUTONOMOUS)])

    def test_switch_to_human_drops_plan(self):
        self.session.hire_agent(0)
        board = self.session.board(0)
        board.autonomy.target = Placement(0, 0)
        board.autonomy.moving = True

        self.session.set_control_mode(0, ControlMode.HUMAN)
        self.assertIsNone(board.autonomy.target)
        self.assertFalse(board.autonomy.moving)
        self.assertTrue(self.session.handle_command(Command.SOFT_DROP))

    def test_mode_change_only_notified_on_change(self):
        self.session.set_control_mode(0, ControlMode.HUMAN)
        self.assertEqual(self.listener.mode_changes, [])

    def test_manual_override_returns_to_agent(self):
        self.session.hire_agent(0)
        self.session.set_hard_drop_unlocked()
        self.session.start_manual_override(0, 2)
        board = self.session.board(0)
        self.assertEqual(board.control_mode, ControlMode.HUMAN)

        self.session.handle_command(Command.HARD_DROP)
        self.assertEqual(board.control_mode, ControlMode.HUMAN)
        self.assertEqual(board.manual_override_remaining, 1)

        self.session.handle_command(Command.HARD_DROP)
        self.assertEqual(board.control_mode, ControlMode.AUTONOMOUS)
        self.assertEqual(self.listener.mode_changes, [
            (0, ControlMode.AUTONOMOUS), (0, ControlMode.HUMAN), (0, ControlMode.AUTONOMOUS),
        ])

    def test_manual_override_focuses_board(self):
        self.max_out(0)
        self.session.add_board()
        self.assertTrue(self.session.start_manual_override(0, 1))
        self.assertEqual(self.session.active_board_index, 0)

    def test_manual_override_gives_focus_back(self):
        self.max_out(0)
        self.session.add_board()
        self.session.start_manual_override(0, 1)

        self.clock.now = 100.0
        self.session.engine(0).hard_drop()
        self.assertEqual(self.session.active_board_index, 1)
        self.assertEqual(self.session.board(0).control_mode, ControlMode.AUTONOMOUS)
        self.assertEqual(self.session.board(1).control_mode, ControlMode.HUMAN)

        piece = self.session.board(1).current_piece
        self.session.tick(now=1101.0)
        self.assertEqual(piece.y, 1)
        self.assertTrue(self.session.handle_command(Command.SOFT_DROP))
        self.assertEqual(piece.y, 2)

    def test_switching_overridden_board_to_agent_gives_focus_back(self):
        self.max_out(0)
        self.session.add_board()
        self.session.start_manual_override(0, 3)

        self.assertTrue(self.session.set_control_mode(0, ControlMode.AUTONOMOUS))
        self.assertEqual(self.session.active_board_index, 1)
        self.assertEqual(self.session.board(0).manual_override_remaining, 0)

    def test_second_override_ends_the_first(self):
        self.max_out(0)
        self.session.add_board()
        self.max_out(1)
        self.session.add_board()
        self.session.start_manual_override(0, 2)
        self.session.start_manual_override(1, 2)

        self.assertEqual(self.session.board(0).control_mode, ControlMode.AUTONOMOUS)
        self.assertEqual(self.session.board(0).manual_override_remaining, 0)
        self.assertEqual(self.session.active_board_index, 1)

        self.session.set_hard_drop_unlocked()
        self.session.handle_command(Command.HARD_DROP)
        self.session.handle_command(Command.HARD_DROP)
        self.assertEqual(self.session.board(1).control_mode, ControlMode.AUTONOMOUS)
        self.assertEqual(self.session.active_board_index, 2)

    def test_lost_board_keeps_its_mode(self):
        self.max_out(0)
        self.session.add_board()
        self.block_spawn(0)
        board = self.session.board(0)

        self.assertFalse(self.session.set_control_mode(0, ControlMode.AUTONOMOUS))
        self.assertEqual(board.control_mode, ControlMode.HUMAN)
        self.assertFalse(self.session.start_manual_override(0, 2))
        self.assertEqual(self.session.active_board_index, 1)
        self.assertEqual(board.manual_override_remaining, 0)
        self.assertFalse(self.session.is_game_over)

    def test_manual_override_needs_pieces(self):
        with self.assertRaises(ValueError):
            self.session.start_manual_override(0, 0)

    def test_upgrade_ai_speed(self):
        self.assertTrue(self.session.upgrade_ai_speed(0))
        self.assertAlmostEqual(self.session.board(0).ai_cadence_ms, 200.0)
        for _ in range(4):
            self.assertTrue(self.session.upgrade_ai_speed(0))
        self.assertFalse(self.session.upgrade_ai_speed(0))
        self.assertEqual(self.session.board(0).ai_speed_level, 5)
        self.assertAlmostEqual(self.session.board(0).ai_cadence_ms, 300.0 / 1.5 ** 5)

    def test_set_ai_cadence(self):
        self.session.set_ai_cadence(0, 50.0)
        self.assertEqual(self.session.board(0).ai_cadence_ms, 50.0)
        with self.assertRaises(ValueError):
            self.session.set_ai_cadence(0, 0)

    def test_force_next_piece_keeps_active_piece(self):
        board = self.session.board(0)
        active = board.current_piece
        before = active.copy()

        self.session.force_next_piece(0, PieceType.I)
        self.assertIs(board.current_piece, active)
        self.assertEqual(active, before)
        self.assertEqual(board.next_piece_type, PieceType.I)
        self.assertEqual(self.listener.next_pieces[-1], (0, PieceType.I))


class TestGameOverAndReset(SessionTestCase):

    def test_unfocused_board_lost(self):
        self.max_out(0)
        self.session.add_board()
        self.block_spawn(0)

        board = self.session.board(0)
        self.assertTrue(board.is_game_over)
        self.assertIsNone(board.current_piece)
        self.assertEqual(board.control_mode, ControlMode.HUMAN)
        self.assertEqual(self.listener.game_overs, [0])
        self.assertFalse(self.session.is_game_over)

        self.session.tick(now=100.0)
        self.assertIsNone(board.current_piece)

    def test_focused_board_lost_ends_session(self):
        self.block_spawn(0)
        self.assertTrue(self.session.is_game_over)
        self.assertFalse(self.session.handle_command(Command.MOVE_LEFT))
        self.session.tick(now=5000.0)
        self.assertEqual(self.listener.snapshots, [])

    def test_reset_board_keeps_capabilities(self):
        self.session.hire_agent(0)
        self.session.set_ai_hard_drop(0)
        self.session.upgrade_ai_speed(0)
        self.block_spawn(0)

        self.session.reset_board(0)
        board = self.session.board(0)
        self.assertFalse(board.is_game_over)
        self.assertFalse(self.session.is_game_over)
        self.assertTrue(np.all(board.grid == 0))
        self.assertIsNotNone(board.current_piece)
        self.assertTrue(board.ai_hired)
        self.assertTrue(board.ai_hard_drop_unlocked)
        self.assertEqual(board.ai_speed_level, 1)
        self.assertEqual(board.control_mode, ControlMode.AUTONOMOUS)
        self.assertEqual(self.listener.resets, [0])

    def test_reset_board_without_agent(self):
        self.block_spawn(0)
        self.session.reset_board(0)
        self.assertEqual(self.session.board(0).control_mode, ControlMode.HUMAN)

    def test_reset_session(self):
        self.max_out(0)
        self.session.add_board()
        self.session.set_hard_drop_unlocked()
        self.session.reset_session()

        self.assertEqual(len(self.session.boards), 1)
        self.assertEqual(self.session.active_board_index, 0)
        self.assertFalse(self.session.hard_drop_unlocked)
        self.assertFalse(self.session.board(0).ai_hired)
        self.assertEqual(self.session.total_lines_cleared, 0)


if __name__ == '__main__':
    unittest.main()
