"""
Test suite for the chesslearn game core.

Covers:
- Positions and the game board (legality, immutability, termination, PGN)
- Position evaluator (terminal scores, material, positional and mobility terms)
- Minimax search (legality, mates, pruning equivalence, tie-breaking)
"""

import chess
import pytest

from chesslearn.core.board import GameBoard, Position
from chesslearn.core.evaluator import EvalWeights, PositionEvaluator, center_bonus
from chesslearn.core.search import INF, MinimaxSearch, SearchResult

FOOLS_MATE = "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"
SCHOLARS_MATE = "r1bqkb1r/pppp1Qpp/2n2n2/4p3/2B1P3/8/PPPP1PPP/RNB1K1NR b KQkq - 0 4"
STALEMATE = "7k/5Q2/6K1/8/8/8/8/8 b - - 0 1"
BACK_RANK_WHITE = "6k1/5ppp/8/8/8/8/8/R5K1 w - - 0 1"
BACK_RANK_BLACK = "r5k1/8/8/8/8/8/5PPP/6K1 b - - 0 1"


# ════════════════════════════════════════════════════════════════════════════
#  POSITION / BOARD TESTS
# ════════════════════════════════════════════════════════════════════════════

class TestPosition:
    def test_default_is_start_position(self):
        assert Position().fen == chess.STARTING_FEN

    def test_legal_moves_are_san(self):
        moves = Position().legal_moves
        assert len(moves) == 20
        assert "e4" in moves
        assert "Nf3" in moves

    def test_apply_returns_new_position(self):
        start = Position()
        after = start.apply("e4")
        assert start.fen == chess.STARTING_FEN
        assert after.board().turn == chess.BLACK
        assert after != start

    def test_apply_illegal_raises(self):
        with pytest.raises(ValueError):
            Position().apply("e5")

    def test_invalid_fen_raises(self):
        with pytest.raises(ValueError):
            Position("invalid")

    def test_equal_positions_compare_equal(self):
        assert Position().apply("Nf3") == Position().apply("Nf3")

    def test_piece_count(self):
        assert Position().piece_count == 32
        assert Position("4k3/8/8/8/8/8/8/4K3 w - - 0 1").piece_count == 2

    def test_checkmate_has_no_moves(self):
        pos = Position(FOOLS_MATE)
        assert pos.legal_moves == ()
        assert pos.outcome.winner == chess.BLACK

    def test_board_is_a_fresh_copy(self):
        pos = Position()
        board = pos.board()
        board.push_san("e4")
        assert pos.board().fen() == chess.STARTING_FEN

    def test_is_legal(self):
        pos = Position()
        assert pos.is_legal("d4")
        assert not pos.is_legal("Ke2")
        assert not pos.is_legal("e2e4")


class TestGameBoard:
    def test_initial_position(self):
        b = GameBoard()
        assert b.get_fen() == chess.STARTING_FEN

    def test_make_legal_move(self):
        b = GameBoard()
        assert b.make_move("e4") is True
        assert b.move_history == ["e4"]

    def test_make_illegal_move(self):
        b = GameBoard()
        assert b.make_move("e5") is False
        assert b.make_move("zzzz") is False
        assert b.make_move("") is False
        assert b.get_fen() == chess.STARTING_FEN
        assert b.move_history == []

    def test_castling_san(self):
        b = GameBoard("r3k2r/pppppppp/8/8/8/8/PPPPPPPP/R3K2R w KQkq - 0 1")
        assert "O-O" in b.get_legal_moves()
        assert b.make_move("O-O") is True

    def test_termination_checkmate(self):
        b = GameBoard()
        for san in ("f3", "e5", "g4", "Qh4#"):
            assert b.make_move(san)
        assert b.is_game_over()
        assert b.termination() == "checkmate"
        assert b.outcome().winner == chess.BLACK

    def test_termination_unterminated(self):
        b = GameBoard()
        assert not b.is_game_over()
        assert b.termination() == "unterminated"

    def test_threefold_counts_as_game_over(self):
        b = GameBoard()
        for _ in range(2):
            for san in ("Nf3", "Nf6", "Ng1", "Ng8"):
                b.make_move(san)
        assert b.is_game_over()
        assert b.termination() == "threefold_repetition"

    def test_pgn_contains_moves_and_headers(self):
        b = GameBoard()
        b.make_move("e4")
        b.make_move("e5")
        pgn = b.pgn({"White": "A", "Black": "B"})
        assert "1. e4 e5" in pgn
        assert '[White "A"]' in pgn


# ════════════════════════════════════════════════════════════════════════════
#  EVALUATOR TESTS
# ════════════════════════════════════════════════════════════════════════════

class TestPositionEvaluator:
    def setup_method(self):
        self.ev = PositionEvaluator()

    def test_starting_position_is_balanced(self):
        assert self.ev.evaluate(chess.Board()) == 0

    def test_white_mated_scores_minus_mate(self):
        assert self.ev.evaluate(chess.Board(FOOLS_MATE)) == -10000

    def test_black_mated_scores_plus_mate(self):
        board = chess.Board(SCHOLARS_MATE)
        assert board.is_checkmate()
        assert self.ev.evaluate(board) == 10000

    def test_stalemate_is_zero(self):
        board = chess.Board(STALEMATE)
        assert board.is_stalemate()
        assert self.ev.evaluate(board) == 0

    def test_insufficient_material_is_zero(self):
        board = chess.Board("4k3/8/8/8/8/8/8/4KN2 w - - 0 1")
        assert board.is_insufficient_material()
        assert self.ev.evaluate(board) == 0

    def test_white_up_queen(self):
        assert self.ev.evaluate(chess.Board("4k3/8/8/8/8/8/8/4KQ2 w - - 0 1")) > 500

    def test_black_up_queen(self):
        assert self.ev.evaluate(chess.Board("4kq2/8/8/8/8/8/8/4K3 w - - 0 1")) < -500

    def test_score_is_white_relative(self):
        """Same placement, other side to move: White still ahead."""
        white = chess.Board("4k3/8/8/8/8/8/8/R3K3 w - - 0 1")
        black = chess.Board("4k3/8/8/8/8/8/8/R3K3 b - - 0 1")
        assert self.ev.evaluate(white) > 300
        assert self.ev.evaluate(black) > 300

    def test_advanced_pawn_scores_higher(self):
        advanced = chess.Board("4k3/8/4P3/8/8/8/8/4K3 w - - 0 1")
        home = chess.Board("4k3/8/8/8/8/4P3/8/4K3 w - - 0 1")
        assert self.ev.evaluate(advanced) > self.ev.evaluate(home)

    def test_center_bonus(self):
        assert center_bonus(chess.D4) == 5
        assert center_bonus(chess.E5) == 5
        assert center_bonus(chess.A1) == 0
        assert center_bonus(chess.H8) == 0

    def test_central_knight_bonus(self):
        knight = chess.Piece(chess.KNIGHT, chess.WHITE)
        assert self.ev.positional_value(knight, chess.E4, False) > self.ev.positional_value(knight, chess.A1, False)

    def test_king_hides_in_middlegame_and_centralizes_in_endgame(self):
        king = chess.Piece(chess.KING, chess.WHITE)
        assert self.ev.positional_value(king, chess.E4, False) < self.ev.positional_value(king, chess.G1, False)
        assert self.ev.positional_value(king, chess.E4, True) > self.ev.positional_value(king, chess.G1, True)

    def test_endgame_detection(self):
        assert not self.ev.is_endgame(chess.Board().piece_map())
        assert self.ev.is_endgame(chess.Board("4k3/8/8/8/8/8/4P3/R3K3 w - - 0 1").piece_map())

    def test_mobility_sign(self):
        # White queen against a bare king: White has far more moves either way round.
        assert self.ev.mobility(chess.Board("4k3/8/8/8/8/8/8/3QK3 w - - 0 1")) > 0
        assert self.ev.mobility(chess.Board("4k3/8/8/8/8/8/8/3QK3 b - - 0 1")) > 0

    def test_evaluate_does_not_mutate_board(self):
        board = chess.Board("r1bqkbnr/pppp1ppp/2n5/4p3/4P3/5N2/PPPP1PPP/RNBQKB1R w KQkq - 2 3")
        board.push_san("Bc4")
        fen, stack = board.fen(), list(board.move_stack)
        for _ in range(3):
            self.ev.evaluate(board)
        assert board.fen() == fen
        assert board.move_stack == stack

    def test_custom_weights(self):
        ev = PositionEvaluator(EvalWeights(mobility_weight=0.0))
        assert ev.evaluate(chess.Board()) == 0
        assert ev.weights.piece_values["QUEEN"] == 900

    def test_weights_to_dict(self):
        d = EvalWeights().to_dict()
        assert d["piece_values"]["KING"] == 20000
        assert d["mate_score"] == 10000


# ════════════════════════════════════════════════════════════════════════════
#  SEARCH TESTS
# ════════════════════════════════════════════════════════════════════════════

class ZeroEvaluator:
    def evaluate(self, board):
        return 0.0


def plain_minimax(evaluator, board, depth):
    """Reference minimax without pruning."""
    if depth == 0 or board.is_game_over():
        return evaluator.evaluate(board)
    scores = []
    for move in list(board.legal_moves):
        board.push(move)
        scores.append(plain_minimax(evaluator, board, depth - 1))
        board.pop()
    return max(scores) if board.turn == chess.WHITE else min(scores)


class TestMinimaxSearch:
    def test_returns_legal_move_from_start(self):
        result = MinimaxSearch(depth=2).search(chess.Board())
        assert isinstance(result, SearchResult)
        assert result.move in Position().legal_moves

    @pytest.mark.parametrize("depth", [1, 2])
    def test_white_mate_in_one(self, depth):
        result = MinimaxSearch(depth=depth).search(chess.Board(BACK_RANK_WHITE))
        assert result.move == "Ra8#"
        assert result.evaluation == 10000

    @pytest.mark.parametrize("depth", [1, 2])
    def test_black_mate_in_one(self, depth):
        result = MinimaxSearch(depth=depth).search(chess.Board(BACK_RANK_BLACK))
        assert result.move == "Ra1#"
        assert result.evaluation == -10000

    def test_captures_hanging_queen(self):
        result = MinimaxSearch(depth=1).search(chess.Board("4k3/8/8/3q4/8/8/3R4/4K3 w - - 0 1"))
        assert result.move.startswith("Rxd5")

    def test_terminal_root_returns_no_move(self):
        result = MinimaxSearch(depth=3).search(chess.Board(FOOLS_MATE))
        assert result.move is None
        assert result.evaluation == -10000

    def test_depth_zero_is_static_evaluation(self):
        search = MinimaxSearch(depth=3)
        board = chess.Board()
        result = search.search(board, depth=0)
        assert result.move is None
        assert result.evaluation == search.evaluator.evaluate(board)

    def test_search_does_not_mutate_board(self):
        board = chess.Board()
        board.push_san("e4")
        fen = board.fen()
        MinimaxSearch(depth=2).search(board)
        assert board.fen() == fen
        assert len(board.move_stack) == 1

    def test_ties_go_to_first_legal_move(self):
        board = chess.Board()
        result = MinimaxSearch(ZeroEvaluator(), depth=2).search(board)
        first = next(iter(board.legal_moves))
        assert result.move == board.san(first)
        assert result.evaluation == 0

    @pytest.mark.parametrize("fen", [
        chess.STARTING_FEN,
        "r1bqkbnr/pppp1ppp/2n5/4p3/2B1P3/5N2/PPPP1PPP/RNBQK2R b KQkq - 3 3",
        "4k3/8/8/3q4/8/2N5/3R4/4K3 w - - 0 1",
    ])
    def test_pruning_matches_plain_minimax(self, fen):
        ev = PositionEvaluator()
        board = chess.Board(fen)
        result = MinimaxSearch(ev, depth=2).search(board)
        assert result.evaluation == plain_minimax(ev, board.copy(), 2)

    def test_pruning_visits_fewer_nodes(self):
        search = MinimaxSearch(depth=2)
        result = search.search(chess.Board())
        assert 0 < result.nodes < 1 + 20 + 400

    def test_moves_always_legal(self):
        """Play a short deterministic line and check every search answer."""
        search = MinimaxSearch(depth=1)
        board = chess.Board()
        for _ in range(12):
            if board.is_game_over():
                break
            result = search.search(board)
            assert result.move in [board.san(m) for m in board.legal_moves]
            board.push_san(result.move)

    def test_inf_constant(self):
        assert INF > 10000
