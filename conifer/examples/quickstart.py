# conifer/examples/quickstart.py
# Run against the local emulator:  python -m conifer_local --port 8000
from conifer import Client, ClientConfig, models as M

cli = Client(ClientConfig.with_api_key("local-key", host="http://localhost:8000"))

# 1) index
idx = cli.create_serverless_index(M.CreateServerlessIndexRequest(
    name="quickstart", cloud=M.Cloud.AWS, region="us-east-1",
    dimension=4, metric=M.IndexMetric.COSINE,
))
print("Index:", idx.name, idx.host)

# 2) vectors
conn = cli.index(idx.host, namespace="demo")
conn.upsert_vectors([
    M.Vector(id="ann-1", values=[0.9, 0.1, 0.0, 0.0], metadata={"tags": ["ann", "search"]}),
    M.Vector(id="search-1", values=[0.1, 0.9, 0.0, 0.0], metadata={"tags": ["vector", "search"]}),
])

# 3) query
res = conn.query_by_vector_values(M.QueryByVectorValuesRequest(
    vector=[1.0, 0.0, 0.0, 0.0], top_k=2, include_metadata=True,
    metadata_filter={"tags": {"$in": ["ann"]}},
))
print("Matches:", [(m.vector.id, round(m.score, 3)) for m in res.matches])

# 4) inference
emb = cli.inference.embed(M.EmbedRequest(model="multilingual-e5-large", text_inputs=["hello"],
                                         parameters={"input_type": "query"}))
print("Embedding dims:", len(emb.data[0].values or []))

conn.close()
cli.delete_index(idx.name)
cli.close()
