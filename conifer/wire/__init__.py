"""Wire-format types: REST JSON bodies and the VectorService protobuf messages."""
