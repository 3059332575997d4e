# conifer/wire/vector_service.py
"""Protobuf messages and stubs of the ``VectorService`` data-plane RPC schema.

``vector_service.proto`` ships beside this module and is compiled by
``grpcio-tools`` on first import. The service has no proto package, so method
paths are ``/VectorService/<Method>``.
"""
from __future__ import annotations

import sys
from pathlib import Path

import grpc
from google.protobuf import struct_pb2

PROTO_FILE = "conifer/wire/vector_service.proto"
SERVICE_NAME = "VectorService"

# the proto is resolved against sys.path, so the directory holding the
# ``conifer`` package has to be on it
_ROOT = str(Path(__file__).resolve().parents[2])
if _ROOT not in sys.path:
    sys.path.append(_ROOT)

vector_service_pb2, vector_service_pb2_grpc = grpc.protos_and_services(PROTO_FILE)

DESCRIPTOR = vector_service_pb2.DESCRIPTOR
METHODS: tuple[str, ...] = tuple(m.name for m in DESCRIPTOR.services_by_name[SERVICE_NAME].methods)

Struct = struct_pb2.Struct
SparseValues = vector_service_pb2.SparseValues
Vector = vector_service_pb2.Vector
ScoredVector = vector_service_pb2.ScoredVector
Usage = vector_service_pb2.Usage
UpsertRequest = vector_service_pb2.UpsertRequest
UpsertResponse = vector_service_pb2.UpsertResponse
DeleteRequest = vector_service_pb2.DeleteRequest
DeleteResponse = vector_service_pb2.DeleteResponse
FetchRequest = vector_service_pb2.FetchRequest
FetchResponse = vector_service_pb2.FetchResponse
ListRequest = vector_service_pb2.ListRequest
Pagination = vector_service_pb2.Pagination
ListItem = vector_service_pb2.ListItem
ListResponse = vector_service_pb2.ListResponse
QueryRequest = vector_service_pb2.QueryRequest
QueryResponse = vector_service_pb2.QueryResponse
UpdateRequest = vector_service_pb2.UpdateRequest
UpdateResponse = vector_service_pb2.UpdateResponse
DescribeIndexStatsRequest = vector_service_pb2.DescribeIndexStatsRequest
NamespaceSummary = vector_service_pb2.NamespaceSummary
DescribeIndexStatsResponse = vector_service_pb2.DescribeIndexStatsResponse
MetadataFieldProperties = vector_service_pb2.MetadataFieldProperties
MetadataSchema = vector_service_pb2.MetadataSchema
IndexedFields = vector_service_pb2.IndexedFields
CreateNamespaceRequest = vector_service_pb2.CreateNamespaceRequest
NamespaceDescription = vector_service_pb2.NamespaceDescription
DescribeNamespaceRequest = vector_service_pb2.DescribeNamespaceRequest
DeleteNamespaceRequest = vector_service_pb2.DeleteNamespaceRequest
ListNamespacesRequest = vector_service_pb2.ListNamespacesRequest
ListNamespacesResponse = vector_service_pb2.ListNamespacesResponse

VectorServiceStub = vector_service_pb2_grpc.VectorServiceStub
VectorServiceServicer = vector_service_pb2_grpc.VectorServiceServicer
add_VectorServiceServicer_to_server = vector_service_pb2_grpc.add_VectorServiceServicer_to_server
