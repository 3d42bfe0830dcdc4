"""Configuration schema for gzip metadata tools."""

from pydantic import BaseModel, Field, ConfigDict
from gzmeta.common import LoggingConfig


class GzipConfig(BaseModel):
    """Compression and metadata defaults."""
    
    model_config = ConfigDict(extra='forbid')
    
    compression_level: int = Field(
        default=6,
        ge=0,
        le=9,
        description="Deflate compression level (0 = store, 9 = smallest)"
    )
    store_filename: bool = Field(
        default=True,
        description="Store the original filename in the gzip header"
    )
    use_stored_filename: bool = Field(
        default=True,
        description="Name decompressed files after the filename stored in the header"
    )
    add_header_crc: bool = Field(
        default=False,
        description="Add a CRC16 of the header when compressing"
    )
    check_header_crc: bool = Field(
        default=False,
        description="Verify the header CRC16 when decompressing"
    )
    comment: str | None = Field(
        default=None,
        description="Comment stored in the gzip header when compressing"
    )


class GzMetaConfig(BaseModel):
    """Root configuration for gzmeta."""
    
    model_config = ConfigDict(extra='forbid')
    
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    gzip: GzipConfig = Field(default_factory=GzipConfig)
