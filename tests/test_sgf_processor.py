"""
Tests for the SGF processing pipeline.

This module runs SGFProcessor end to end on small generated game records and
checks the written HDF5 tables.
"""

import logging
import pytest
import tempfile
import shutil
from pathlib import Path

import h5py
import numpy as np

from go_ai.config import INPUT_LEN, NUM_FEATURES, TARGET_LEN, TARGET_OFFSET, TOTAL_ROW_LEN, WEIGHT_OFFSET
from go_ai.sgf_processing.config import ProcessingConfig
from go_ai.sgf_processing.processor import SGFProcessor

# Points with both coordinates even are never adjacent, so games built from
# them have no captures and every move is legal.
EVEN_LETTERS = "acegikmoqs"
SPREAD_POINTS = [x + y for y in EVEN_LETTERS for x in EVEN_LETTERS]


def make_sgf(num_moves: int, start: int = 0, size: int = 19) -> str:
    nodes = []
    for i in range(num_moves):
        color = "B" if i % 2 == 0 else "W"
        nodes.append(f";{color}[{SPREAD_POINTS[(start + i) % len(SPREAD_POINTS)]}]")
    return f"(;GM[1]FF[4]SZ[{size}]" + "".join(nodes) + ")"


class TestSGFProcessor:
    """Test the SGFProcessor class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.games_dir = Path(self.temp_dir) / "games"
        self.games_dir.mkdir()
        self.output_file = Path(self.temp_dir) / "out.h5"

    def teardown_method(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir)

    def create_sgf_file(self, filename: str, content: str, directory: Path = None) -> Path:
        """Create a game record with given content."""
        file_path = (directory or self.games_dir) / filename
        file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, 'w') as f:
            f.write(content)
        return file_path

    def make_config(self, **overrides) -> ProcessingConfig:
        params = dict(
            games_dirs=[str(self.games_dir)],
            output_file=str(self.output_file),
            train_pool_size=7,
            test_size=5,
            chunk_height=3,
            seed=1234,
        )
        params.update(overrides)
        return ProcessingConfig(**params)

    def read_tables(self, path=None):
        with h5py.File(path or self.output_file, "r") as h5_file:
            return h5_file["train"][:], h5_file["test"][:]

    def test_initialization(self):
        processor = SGFProcessor(self.make_config())
        assert processor.rand.seed == 1234
        assert processor.error_tracker.get_stats() == {'skipped_files': 0, 'aborted_games': 0}

    def test_counts(self):
        self.create_sgf_file("a.sgf", make_sgf(10))
        self.create_sgf_file("b.sgf", make_sgf(8, start=20))
        self.create_sgf_file("c.sgf", make_sgf(6, start=40))

        summary = SGFProcessor(self.make_config()).run()

        train, test = self.read_tables()
        assert train.shape == (19, TOTAL_ROW_LEN)
        assert test.shape == (5, TOTAL_ROW_LEN)
        assert summary['files_found'] == 3
        assert summary['rows'] == 24
        assert summary['train_rows'] == 19
        assert summary['test_rows'] == 5
        assert summary['games_processed'] == 3
        assert 0 < summary['unique_pos_hashes'] <= 24

    def test_rows_are_well_formed(self):
        self.create_sgf_file("a.sgf", make_sgf(12))
        SGFProcessor(self.make_config()).run()

        train, test = self.read_tables()
        rows = np.concatenate([train, test])
        assert len(rows) == 12
        on_board = rows[:, :INPUT_LEN].reshape(-1, 361, NUM_FEATURES)[:, :, 0]
        np.testing.assert_array_equal(on_board.sum(axis=1), 361)
        np.testing.assert_array_equal(rows[:, TARGET_OFFSET:TARGET_OFFSET + TARGET_LEN].sum(axis=1), 1)
        np.testing.assert_array_equal(rows[:, WEIGHT_OFFSET], 1.0)
        # Every move of the game is a target exactly once
        assert len({int(np.argmax(r[TARGET_OFFSET:TARGET_OFFSET + TARGET_LEN])) for r in rows}) == 12

    def test_same_seed_gives_identical_file(self):
        for i in range(4):
            self.create_sgf_file(f"g{i}.sgf", make_sgf(5 + i, start=7 * i))

        SGFProcessor(self.make_config()).run()
        train_a, test_a = self.read_tables()
        other = Path(self.temp_dir) / "other.h5"
        SGFProcessor(self.make_config(output_file=str(other))).run()
        train_b, test_b = self.read_tables(other)

        np.testing.assert_array_equal(train_a, train_b)
        np.testing.assert_array_equal(test_a, test_b)

    def test_summary_logs_memory(self, caplog):
        self.create_sgf_file("a.sgf", make_sgf(4))
        with caplog.at_level(logging.INFO):
            SGFProcessor(self.make_config()).run()
        assert "PROCESSING SUMMARY:" in caplog.text
        assert "MB rss" in caplog.text
        assert "GB available" in caplog.text

    def test_random_seed_is_recorded(self):
        self.create_sgf_file("a.sgf", make_sgf(4))
        summary = SGFProcessor(self.make_config(seed=None)).run()
        assert isinstance(summary['seed'], int)
        with h5py.File(self.output_file, "r") as h5_file:
            assert h5_file.attrs['summary_seed'] == summary['seed']
            assert h5_file.attrs['summary_rows'] == 4

    def test_test_size_zero(self):
        self.create_sgf_file("a.sgf", make_sgf(3))
        SGFProcessor(self.make_config(train_pool_size=10, test_size=0, chunk_height=10)).run()
        train, test = self.read_tables()
        assert train.shape == (3, TOTAL_ROW_LEN)
        assert test.shape == (0, TOTAL_ROW_LEN)

    def test_single_test_row(self):
        self.create_sgf_file("a.sgf", make_sgf(5))
        SGFProcessor(self.make_config(train_pool_size=10, test_size=1, chunk_height=10)).run()
        train, test = self.read_tables()
        assert len(train) == 4
        assert len(test) == 1

    def test_bad_file_is_skipped(self):
        self.create_sgf_file("good.sgf", make_sgf(6))
        self.create_sgf_file("bad.sgf", "(;SZ[19];B[dd")
        self.create_sgf_file("empty.sgf", "")

        summary = SGFProcessor(self.make_config()).run()
        assert summary['skipped_files'] == 2
        assert summary['rows'] == 6

    def test_deeply_nested_file_does_not_stop_run(self):
        self.create_sgf_file("good.sgf", make_sgf(6))
        depth = 1200
        nested = "(;SZ[19]" + "".join(f"(;{'BW'[d % 2]}[tt]" for d in range(depth)) + ")" * (depth + 1)
        self.create_sgf_file("nested.sgf", nested)

        summary = SGFProcessor(self.make_config()).run()
        assert summary['skipped_files'] == 0
        assert summary['rows'] == 6
        train, test = self.read_tables()
        assert len(train) + len(test) == 6

    def test_unsupported_board_size_is_filtered(self):
        self.create_sgf_file("big.sgf", make_sgf(6))
        self.create_sgf_file("small.sgf", make_sgf(6, size=13))

        summary = SGFProcessor(self.make_config()).run()
        assert summary['games_filtered'] == 1
        assert summary['rows'] == 6

    def test_aborted_game_keeps_rows(self):
        self.create_sgf_file("a.sgf", "(;SZ[19];B[dd];W[pp];W[dp];B[pd])")
        summary = SGFProcessor(self.make_config()).run()
        assert summary['games_aborted'] == 1
        assert summary['rows'] == 2

    def test_nested_directories_and_suffix(self):
        self.create_sgf_file("top.sgf", make_sgf(2))
        self.create_sgf_file("deep/er/nested.sgf", make_sgf(3))
        self.create_sgf_file("notes.txt", make_sgf(4))
        self.create_sgf_file("upper.SGF", make_sgf(5))

        summary = SGFProcessor(self.make_config()).run()
        assert summary['files_found'] == 2
        assert summary['rows'] == 5

    def test_multiple_game_directories(self):
        other_dir = Path(self.temp_dir) / "more_games"
        other_dir.mkdir()
        self.create_sgf_file("a.sgf", make_sgf(4))
        self.create_sgf_file("b.sgf", make_sgf(3), directory=other_dir)

        summary = SGFProcessor(self.make_config(games_dirs=[str(self.games_dir), str(other_dir)])).run()
        assert summary['files_found'] == 2
        assert summary['rows'] == 7

    def test_max_files(self):
        for i in range(5):
            self.create_sgf_file(f"g{i}.sgf", make_sgf(2))
        summary = SGFProcessor(self.make_config(max_files=2)).run()
        assert summary['files_found'] == 2
        assert summary['rows'] == 4

    def test_no_files(self):
        summary = SGFProcessor(self.make_config()).run()
        assert summary['rows'] == 0
        train, test = self.read_tables()
        assert len(train) == 0
        assert len(test) == 0

    def test_missing_games_dir_fails_before_output(self):
        config = self.make_config(games_dirs=[str(Path(self.temp_dir) / "missing")])
        with pytest.raises(ValueError, match="does not exist"):
            SGFProcessor(config)
        assert not self.output_file.exists()

    @pytest.mark.parametrize("overrides", [
        dict(train_pool_size=0),
        dict(test_size=-1),
        dict(chunk_height=0),
        dict(deflate_level=10),
        dict(log_interval=0),
        dict(max_files=0),
        dict(seed=-5),
        dict(games_dirs=[]),
    ])
    def test_invalid_config_fails_before_output(self, overrides):
        with pytest.raises(ValueError):
            SGFProcessor(self.make_config(**overrides))
        assert not self.output_file.exists()

    def test_output_parent_must_exist(self):
        config = self.make_config(output_file=str(Path(self.temp_dir) / "nope" / "out.h5"))
        with pytest.raises(ValueError, match="Output directory does not exist"):
            SGFProcessor(config)


class TestProcessingConfig:
    """Test ProcessingConfig."""

    def test_dict_round_trip(self):
        config = ProcessingConfig(games_dirs=["a", "b"], output_file="out.h5",
                                  train_pool_size=100, test_size=10, seed=3)
        restored = ProcessingConfig.from_dict(config.to_dict())
        assert restored.to_dict() == config.to_dict()
        assert restored.games_dirs == [Path("a"), Path("b")]

    def test_repr(self):
        config = ProcessingConfig(games_dirs=["a"], output_file="out.h5",
                                  train_pool_size=100, test_size=10)
        text = repr(config)
        assert "train_pool_size=100" in text
        assert "test_size=10" in text
        assert "chunk_height=2000" in text
