"""Tests for the gzip header model."""

import io
import struct
import zlib
from datetime import datetime, timedelta, timezone

import pytest

from gzmeta.gzip_tools.errors import HeaderEncodingError, TruncatedHeaderError
from gzmeta.gzip_tools.header import (
    GzipFlags, GzipHeader, MTIME_NOT_SET, UNIX_EPOCH,
    encode_mtime, decode_mtime, encode_header_string, header_crc16,
    read_header, parse_header_buffer,
)


def fixed_header(flags: int = 0, mtime: int = 0) -> bytes:
    return b"\x1f\x8b\x08" + bytes([flags]) + struct.pack("<L", mtime) + b"\x00\x03"


class TestEncodeMtime:
    """Test conversion of modification times to MTIME."""
    
    def test_none_is_not_set(self):
        """Test that no time encodes as 0."""
        assert encode_mtime(None) == 0
    
    def test_aware_datetime(self):
        """Test an aware UTC datetime."""
        assert encode_mtime(datetime(2020, 1, 2, 3, 4, 5, tzinfo=timezone.utc)) == 1577934245
    
    def test_other_timezone(self):
        """Test that the UTC offset is applied."""
        plus_one = timezone(timedelta(hours=1))
        
        assert encode_mtime(datetime(2020, 1, 1, 1, 0, tzinfo=plus_one)) == 1577836800
    
    def test_fraction_truncated(self):
        """Test that fractions of a second are dropped."""
        assert encode_mtime(1577836800.9) == 1577836800
        assert encode_mtime(datetime(2020, 1, 1, 0, 0, 0, 999999, tzinfo=timezone.utc)) == 1577836800
    
    @pytest.mark.parametrize("value", [
        UNIX_EPOCH,
        datetime(1969, 7, 20, 20, 17, tzinfo=timezone.utc),
        datetime(1900, 1, 1),
        MTIME_NOT_SET,
        0,
        -5,
    ])
    def test_epoch_or_earlier_is_not_set(self, value):
        """Test that times at or before the epoch encode as 0."""
        assert encode_mtime(value) == 0
    
    def test_largest_value(self):
        """Test the last second a header can hold."""
        assert encode_mtime(0xFFFFFFFF) == 0xFFFFFFFF
    
    def test_too_late(self):
        """Test that times past 32 bits are rejected."""
        with pytest.raises(HeaderEncodingError):
            encode_mtime(2 ** 32)


class TestDecodeMtime:
    """Test conversion of MTIME to datetimes."""
    
    def test_zero_is_sentinel(self):
        """Test that 0 decodes to the not-set sentinel."""
        assert decode_mtime(0) is MTIME_NOT_SET
    
    def test_value(self):
        """Test that a value decodes to an aware UTC datetime."""
        assert decode_mtime(1577836800) == datetime(2020, 1, 1, tzinfo=timezone.utc)
    
    def test_sentinel_is_earliest(self):
        """Test that the sentinel sorts before any real header time."""
        assert MTIME_NOT_SET < decode_mtime(1)


class TestEncodeHeaderString:
    """Test ISO-8859-1 string encoding."""
    
    def test_ascii(self):
        """Test that a terminator is appended."""
        assert encode_header_string("sample.txt") == b"sample.txt\x00"
    
    def test_latin1(self):
        """Test characters outside ASCII but inside ISO-8859-1."""
        assert encode_header_string("café") == b"caf\xe9\x00"
    
    def test_embedded_nul(self):
        """Test that text stops at an embedded NUL."""
        assert encode_header_string("a\x00b") == b"a\x00"
    
    def test_unencodable(self):
        """Test that characters outside ISO-8859-1 are rejected."""
        with pytest.raises(HeaderEncodingError):
            encode_header_string("日本.txt")


class TestGzipHeader:
    """Test header serialization and parsing."""
    
    def test_minimal_header(self):
        """Test the 10 fixed bytes."""
        header = GzipHeader(mtime=1577836800, os_id=3)
        
        assert header.to_bytes() == fixed_header(0, 1577836800)
    
    def test_properties(self):
        """Test derived properties."""
        header = GzipHeader(mtime=1577836800, os_id=3)
        
        assert header.is_gzip
        assert header.last_modified == datetime(2020, 1, 1, tzinfo=timezone.utc)
        assert header.os_name == "Unix"
        assert GzipHeader(os_id=200).os_name == "Unknown"
        assert not GzipHeader(magic1=0x50, magic2=0x4B).is_gzip
    
    def test_reserved_flags_preserved(self):
        """Test that reserved flag bits are written as given."""
        header = GzipHeader(flags=GzipFlags.FTEXT | GzipFlags.RESERVED1)
        
        assert header.to_bytes()[3] == 0x21
    
    def test_full_header_round_trip(self):
        """Test every optional section."""
        header = GzipHeader(
            flags=GzipFlags.FEXTRA | GzipFlags.FNAME | GzipFlags.FCOMMENT | GzipFlags.FHCRC,
            mtime=1600000000,
            os_id=3,
            extra_field=b"AB\x02\x00hi",
            filename="sample.txt",
            comment="hello",
        )
        data = header.to_bytes()
        
        parsed, prefix = read_header(io.BytesIO(data + b"deflate").read)
        
        assert parsed == header
        assert prefix == data[:-2]
        assert parsed.header_crc == zlib.crc32(prefix) & 0xFFFF
        assert header_crc16(prefix) == parsed.header_crc
    
    def test_layout(self):
        """Test the order of the optional sections."""
        header = GzipHeader(
            flags=GzipFlags.FEXTRA | GzipFlags.FNAME | GzipFlags.FCOMMENT,
            extra_field=b"xy",
            filename="f",
            comment="c",
        )
        
        assert header.to_bytes()[10:] == b"\x02\x00xy" + b"f\x00" + b"c\x00"
    
    def test_extra_field_too_long(self):
        """Test that XLEN must fit in 16 bits."""
        header = GzipHeader(flags=GzipFlags.FEXTRA, extra_field=b"x" * 0x10000)
        
        with pytest.raises(HeaderEncodingError):
            header.to_bytes()
    
    def test_parse_header_buffer(self):
        """Test that the header size within a buffer is reported."""
        data = GzipHeader(flags=GzipFlags.FNAME, filename="data.bin").to_bytes()
        
        header, size = parse_header_buffer(data + b"\x03\x00")
        
        assert size == len(data)
        assert header.filename == "data.bin"
        assert header.header_crc is None


class TestTruncatedHeader:
    """Test parsing of headers cut short."""
    
    def test_short_fixed_header(self):
        """Test fewer than 10 bytes."""
        with pytest.raises(TruncatedHeaderError) as exc_info:
            parse_header_buffer(b"\x1f\x8b\x08")
        
        assert exc_info.value.context["field"] == "fixed header"
    
    def test_unterminated_filename(self):
        """Test that the partial filename is kept."""
        data = fixed_header(GzipFlags.FNAME) + b"partial"
        
        with pytest.raises(TruncatedHeaderError) as exc_info:
            parse_header_buffer(data)
        
        assert exc_info.value.context["field"] == "filename"
        assert exc_info.value.context["header"].filename == "partial"
    
    def test_short_extra_field(self):
        """Test an extra field shorter than XLEN."""
        data = fixed_header(GzipFlags.FEXTRA) + b"\x10\x00abc"
        
        with pytest.raises(TruncatedHeaderError) as exc_info:
            parse_header_buffer(data)
        
        assert exc_info.value.context["field"] == "extra field"
    
    def test_missing_crc(self):
        """Test a header that ends before its CRC16."""
        data = fixed_header(GzipFlags.FHCRC) + b"\x01"
        
        with pytest.raises(TruncatedHeaderError) as exc_info:
            parse_header_buffer(data)
        
        assert exc_info.value.context["field"] == "header CRC"
