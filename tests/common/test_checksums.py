"""Tests for checksum utilities."""

import io
import zlib

import pytest
from pathlib import Path
from gzmeta.common.checksums import (
    CRC32_TABLE, crc32, update_crc32, crc32_stream, compute_crc32, compute_crc32_hex,
)


class TestCRC32Engine:
    """Tests for the table-driven CRC-32."""
    
    def test_table_size(self):
        """Test that the table holds one entry per byte value."""
        assert len(CRC32_TABLE) == 256
        assert CRC32_TABLE[0] == 0
        assert CRC32_TABLE[1] == 0x77073096
        assert CRC32_TABLE[255] == 0x2D02EF8D
    
    def test_empty_input(self):
        """Test that no bytes give a CRC of zero."""
        assert crc32(b"") == 0
        assert update_crc32(0, b"") == 0
    
    def test_check_value(self):
        """Test the standard CRC-32 check value."""
        assert crc32(b"123456789") == 0xCBF43926
    
    def test_incremental_update(self):
        """Test that updating chunk by chunk matches a single pass."""
        crc = 0
        for chunk in (b"1", b"2345", b"", b"6789"):
            crc = update_crc32(crc, chunk)
        
        assert crc == 0xCBF43926
    
    def test_matches_zlib(self):
        """Test agreement with zlib on arbitrary data."""
        data = bytes(range(256)) * 17 + b"gzip header"
        
        assert crc32(data) == zlib.crc32(data)
    
    def test_accepts_byte_iterables(self):
        """Test that bytearray, memoryview and int lists are accepted."""
        data = b"The quick brown fox"
        expected = zlib.crc32(data)
        
        assert crc32(bytearray(data)) == expected
        assert crc32(memoryview(data)) == expected
        assert crc32(list(data)) == expected


class TestCRC32Stream:
    """Tests for crc32_stream function."""
    
    def test_stream_matches_buffer(self):
        """Test that reading in small chunks gives the same CRC."""
        data = b"abcdefghij" * 1000
        
        assert crc32_stream(io.BytesIO(data), chunk_size=7) == zlib.crc32(data)
    
    def test_stream_from_current_position(self):
        """Test that only the remaining bytes are checksummed."""
        stream = io.BytesIO(b"skip123456789")
        stream.seek(4)
        
        assert crc32_stream(stream) == 0xCBF43926
    
    def test_rejects_invalid_chunk_size(self):
        """Test that a non-positive chunk size is rejected."""
        with pytest.raises(ValueError):
            crc32_stream(io.BytesIO(b"data"), chunk_size=0)


class TestComputeCRC32:
    """Tests for compute_crc32 function."""
    
    def test_crc32_different_files(self, tmp_path):
        """Test that different files have different CRC32 values."""
        file1 = tmp_path / "file1.txt"
        file2 = tmp_path / "file2.txt"
        
        file1.write_text("Content A", encoding='utf-8')
        file2.write_text("Content B", encoding='utf-8')
        
        crc1 = compute_crc32(file1)
        crc2 = compute_crc32(file2)
        
        assert crc1 != crc2
        assert isinstance(crc1, int)
    
    def test_crc32_large_file(self, tmp_path):
        """Test CRC32 calculation on a file larger than the chunk size."""
        large_file = tmp_path / "large.bin"
        data = b'X' * (128 * 1024 + 3)
        large_file.write_bytes(data)
        
        assert compute_crc32(large_file) == zlib.crc32(data)
    
    def test_crc32_empty_file(self, tmp_path):
        """Test CRC32 calculation on empty file."""
        empty_file = tmp_path / "empty.txt"
        empty_file.write_bytes(b"")
        
        assert compute_crc32(empty_file) == 0
    
    def test_crc32_nonexistent_file(self, tmp_path):
        """Test CRC32 calculation on non-existent file raises OSError."""
        nonexistent = tmp_path / "does_not_exist.txt"
        
        with pytest.raises(OSError):
            compute_crc32(nonexistent)
    
    def test_crc32_matches_table_engine(self, tmp_path):
        """Test that the file checksum agrees with the streaming table engine."""
        test_file = tmp_path / "mixed.bin"
        test_file.write_bytes(bytes(range(256)) * 300)
        
        with open(test_file, 'rb') as f:
            expected = crc32_stream(f, chunk_size=1000)
        
        assert compute_crc32(test_file) == expected


class TestComputeCRC32Hex:
    """Tests for compute_crc32_hex function."""
    
    def test_crc32_hex_format(self, tmp_path):
        """Test that hex output is 8 lowercase digits."""
        test_file = tmp_path / "test.txt"
        test_file.write_bytes(b"123456789")
        
        crc_hex = compute_crc32_hex(test_file)
        
        assert crc_hex == "cbf43926"
    
    def test_crc32_hex_zero_padded(self, tmp_path):
        """Test that small values are zero padded."""
        empty_file = tmp_path / "empty.txt"
        empty_file.write_bytes(b"")
        
        assert compute_crc32_hex(empty_file) == "00000000"
    
    def test_crc32_hex_consistency(self, tmp_path):
        """Test that hex matches the integer result."""
        test_file = tmp_path / "test.txt"
        test_file.write_text("Consistency test", encoding='utf-8')
        
        assert compute_crc32_hex(test_file) == f"{compute_crc32(test_file):08x}"
