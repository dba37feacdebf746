from knowhow_rag.config import Settings


def test_defaults(monkeypatch):
    for var in ("OPENAI_API_KEY", "VECTOR_BACKEND", "RETRIEVAL_TOP_K"):
        monkeypatch.delenv(var, raising=False)

    s = Settings(_env_file=None)

    assert s.openai_api_key.get_secret_value() == "demo"
    assert s.vector_backend == "pgvector"
    assert s.ingest_batch_size == 200
    assert s.ingest_max_offset == 10000
    assert s.retrieval_candidates == 50
    assert s.retrieval_top_k == 15
    assert s.chunk_size == 1000
    assert s.chunk_overlap == 200


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("VECTOR_BACKEND", "faiss")
    monkeypatch.setenv("RETRIEVAL_TOP_K", "5")

    s = Settings(_env_file=None)

    assert s.vector_backend == "faiss"
    assert s.retrieval_top_k == 5
