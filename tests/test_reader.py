"""Tests for reconciler.reader module."""

import json
import os

import pytest

from reconciler.reader import (
    MATCH_COLUMNS,
    MissingInputError,
    detect_encoding,
    find_latest_file,
    load_inputs,
    read_ratings_json,
    read_rows,
    resolve_folder,
)


class TestDetectEncoding:
    """Tests for encoding detection."""

    def test_utf16le_bom(self, tmp_path):
        f = tmp_path / 'test.csv'
        f.write_bytes('a,b\n1,2\n'.encode('utf-16'))
        assert detect_encoding(f) == 'utf-16-le'

    def test_utf8_fallback(self, tmp_path):
        f = tmp_path / 'test.csv'
        f.write_text('hello', encoding='utf-8')
        assert detect_encoding(f) == 'utf-8-sig'


class TestReadRows:
    """Tests for reading CSV files."""

    def test_scores_stay_literal_text(self, tmp_path):
        f = tmp_path / 'match-results.csv'
        f.write_text(
            'MemNum_W,MemNum_L,Score,Division\n100,200,"8,5,5",Open\n',
            encoding='utf-8',
        )
        rows = read_rows(f, MATCH_COLUMNS)
        assert rows == [{'MemNum_W': '100', 'MemNum_L': '200', 'Score': '8,5,5', 'Division': 'Open'}]

    def test_utf8_bom_header(self, tmp_path):
        f = tmp_path / 'm.csv'
        f.write_text('Membership#,FirstName\n100,Ann\n', encoding='utf-8-sig')
        rows = read_rows(f, {'Membership#'})
        assert rows[0]['Membership#'] == '100'

    def test_utf16_file(self, tmp_path):
        f = tmp_path / 'm.csv'
        f.write_bytes('id,firstName\np1,Zoë\n'.encode('utf-16'))
        rows = read_rows(f)
        assert rows[0] == {'id': 'p1', 'firstName': 'Zoë'}

    def test_short_row_filled_with_empty(self, tmp_path):
        f = tmp_path / 'm.csv'
        f.write_text('a,b,c\n1\n', encoding='utf-8')
        assert read_rows(f) == [{'a': '1', 'b': '', 'c': ''}]

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_rows(tmp_path / 'nonexistent.csv')

    def test_missing_columns_raises(self, tmp_path):
        f = tmp_path / 'bad.csv'
        f.write_text('Col1,Col2\na,b\n', encoding='utf-8')
        with pytest.raises(ValueError, match='Fehlende Spalten'):
            read_rows(f, MATCH_COLUMNS)

    def test_empty_file_raises(self, tmp_path):
        f = tmp_path / 'empty.csv'
        f.write_text('', encoding='utf-8')
        with pytest.raises(ValueError, match='leer'):
            read_rows(f)


class TestFindLatestFile:
    """Tests for latest-file discovery."""

    def test_newest_by_mtime(self, tmp_path):
        old = tmp_path / 'players-old.csv'
        new = tmp_path / 'players-new.csv'
        old.write_text('x', encoding='utf-8')
        new.write_text('x', encoding='utf-8')
        os.utime(old, (1_000_000, 1_000_000))
        os.utime(new, (2_000_000, 2_000_000))
        assert find_latest_file(tmp_path, 'players') == new

    def test_ignores_other_extensions(self, tmp_path):
        (tmp_path / 'players.json').write_text('[]', encoding='utf-8')
        assert find_latest_file(tmp_path, 'players') is None

    def test_no_candidate(self, tmp_path):
        assert find_latest_file(tmp_path, 'match-results') is None


class TestReadRatingsJson:
    """Tests for the optional players.json."""

    def test_absent(self, tmp_path):
        assert read_ratings_json(tmp_path) == []

    def test_not_a_list(self, tmp_path):
        (tmp_path / 'players.json').write_text(json.dumps({'a': 1}), encoding='utf-8')
        assert read_ratings_json(tmp_path) == []

    def test_records(self, tmp_path):
        (tmp_path / 'players.json').write_text(
            json.dumps([{'usattId': 1, 'rating': 1200}, 'junk']), encoding='utf-8',
        )
        assert read_ratings_json(tmp_path) == [{'usattId': 1, 'rating': 1200}]


class TestLoadInputs:
    """Tests for loading a tournament folder."""

    def test_loads_all_sources(self, tournament_dir):
        inputs = load_inputs(tournament_dir)
        assert inputs.folder == tournament_dir
        assert len(inputs.registry) == 4
        assert len(inputs.roster) == 5
        assert len(inputs.matches) == 4
        assert len(inputs.ratings) == 2

    def test_missing_source_raises(self, tournament_dir):
        (tournament_dir / 'match-results.csv').unlink()
        with pytest.raises(MissingInputError, match='match-results'):
            load_inputs(tournament_dir)

    def test_missing_folder_raises(self, tmp_path):
        with pytest.raises(MissingInputError):
            load_inputs(tmp_path / 'nope')

    def test_missing_input_is_file_not_found(self):
        assert issubclass(MissingInputError, FileNotFoundError)


class TestResolveFolder:
    """Tests for folder argument handling."""

    def test_relative_name(self, tmp_path):
        assert resolve_folder('202512', tmp_path) == tmp_path / '202512'

    def test_absolute_path(self, tmp_path):
        assert resolve_folder(tmp_path / 'x', tmp_path / 'base') == tmp_path / 'x'
