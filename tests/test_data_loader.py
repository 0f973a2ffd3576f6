"""Tests for the title agency table loader."""

import pytest

from ecfr_analyzer.data_loader import TitleAgencyLoader


class TestTitleAgencyLoader:
    """Test cases for the TitleAgencyLoader class."""

    @pytest.fixture
    def loader(self):
        return TitleAgencyLoader()

    def test_bundled_table_loads(self, loader):
        table = loader.load_table()

        assert len(table) == 42
        assert table[1] == 'General Provisions'
        assert table[27] == 'Alcohol, Tobacco Products and Firearms'
        assert table[50] == 'Wildlife and Fisheries'

    @pytest.mark.parametrize('number,expected', [
        (7, 'Agriculture'),
        ('29', 'Labor'),
        (40, 'Protection of Environment'),
        (6, 'Federal Agency (Title 6)'),
        (51, 'Federal Agency (Title 51)'),
        ('abc', 'Unknown Agency'),
        (None, 'Unknown Agency'),
    ])
    def test_resolve_agency(self, loader, number, expected):
        assert loader.resolve_agency(number) == expected

    def test_custom_table(self, tmp_path):
        table_file = tmp_path / 'agencies.csv'
        table_file.write_text(
            "title_number,agency_name\n"
            "1,Custom Agency\n"
            "bad,Broken Row\n"
            "2,\n"
        )
        loader = TitleAgencyLoader(table_file)

        assert loader.load_table() == {1: 'Custom Agency'}
        assert loader.resolve_agency(2) == 'Federal Agency (Title 2)'

    def test_missing_file(self, tmp_path):
        loader = TitleAgencyLoader(tmp_path / 'missing.csv')
        with pytest.raises(FileNotFoundError):
            loader.load_table()

    def test_missing_columns(self, tmp_path):
        table_file = tmp_path / 'agencies.csv'
        table_file.write_text("number,name\n1,General\n")

        with pytest.raises(ValueError, match="Missing required columns"):
            TitleAgencyLoader(table_file).load_table()
