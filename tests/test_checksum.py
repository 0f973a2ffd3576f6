"""Tests for title and collection checksums."""

import hashlib
import zlib
from unittest.mock import patch

from ecfr_analyzer.checksum import canonical_string, collection_checksum, title_checksum
from ecfr_analyzer.models import Title


class TestTitleChecksum:
    """Test cases for title_checksum."""

    def test_canonical_string(self):
        title = Title(number=7, name='Agriculture', content='a b', word_count=2)
        assert canonical_string(title) == '7|Agriculture|a b|2'

    def test_none_fields_become_empty(self):
        title = Title(number=None, name='Odd', content=None)
        assert canonical_string(title) == '|Odd||0'

    def test_sha256_lowercase_hex(self):
        title = Title(number=7, name='Agriculture', content='a b', word_count=2)
        expected = hashlib.sha256(b'7|Agriculture|a b|2').hexdigest()

        assert title_checksum(title) == expected
        assert title_checksum(title) == title_checksum(title)

    def test_ignores_non_canonical_fields(self):
        first = Title(number=7, name='Agriculture', content='a b', word_count=2, agency='X')
        second = Title(number=7, name='Agriculture', content='a b', word_count=2, agency='Y')
        assert title_checksum(first) == title_checksum(second)

    def test_content_sensitive(self):
        first = Title(number=7, name='Agriculture', content='a b', word_count=2)
        second = Title(number=7, name='Agriculture', content='a c', word_count=2)
        assert title_checksum(first) != title_checksum(second)

    def test_unencodable_content_falls_back_to_crc32(self):
        title = Title(number=1, name='Broken', content='bad \ud800 surrogate', word_count=3)

        checksum = title_checksum(title)

        expected = zlib.crc32(canonical_string(title).encode('utf-8', 'surrogatepass'))
        assert checksum == str(expected)


class TestCollectionChecksum:
    """Test cases for collection_checksum."""

    def test_order_invariant(self, sample_titles):
        assert collection_checksum(sample_titles) == collection_checksum(list(reversed(sample_titles)))

    def test_content_sensitive(self, title_factory):
        titles = [title_factory(1, content='a b'), title_factory(2, content='c d')]
        changed = [title_factory(1, content='a b'), title_factory(2, content='c e')]
        assert collection_checksum(titles) != collection_checksum(changed)

    def test_sorted_by_number_with_missing_last(self):
        titles = [
            Title(number=None, name='B'),
            Title(number=10, name='Ten'),
            Title(number=2, name='Two'),
            Title(number='x', name='A'),
        ]
        expected_text = '\n'.join([
            '2|Two||0', '10|Ten||0', 'x|A||0', '|B||0'
        ])

        assert collection_checksum(titles) == hashlib.sha256(expected_text.encode()).hexdigest()

    def test_empty_collection(self):
        assert collection_checksum([]) == hashlib.sha256(b'').hexdigest()

    def test_hashing_failure_degrades(self, sample_titles):
        with patch('ecfr_analyzer.checksum.hashlib.sha256', side_effect=ValueError("no digest")):
            checksum = collection_checksum(sample_titles)
        assert checksum.isdigit()
