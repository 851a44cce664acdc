import pytest

from procgraph import GraphBuilder, OperationCatalog

PROCESSES = [
    {"id": "add", "parameters": [{"name": "x"}, {"name": "y"}]},
    {"id": "subtract", "parameters": [{"name": "x"}, {"name": "y"}]},
    {"id": "multiply", "parameters": [{"name": "x"}, {"name": "y"}]},
    {"id": "divide", "parameters": [{"name": "x"}, {"name": "y"}]},
    {"id": "power", "parameters": [{"name": "base"}, {"name": "p"}]},
    {"id": "sqrt", "parameters": [{"name": "x"}]},
    {"id": "absolute", "parameters": [{"name": "x"}]},
    {"id": "load_collection", "parameters": [{"name": "id"}, {"name": "spatial_extent", "optional": True}]},
    {"id": "reduce_dimension", "parameters": [{"name": "data"}, {"name": "reducer"}, {"name": "dimension"}]},
]


@pytest.fixture
def catalog() -> OperationCatalog:
    return OperationCatalog.from_processes(PROCESSES)


@pytest.fixture
def builder(catalog: OperationCatalog) -> GraphBuilder:
    return GraphBuilder(catalog)
