from typing import Any, List

import pytest

from posix_system_mcp.core.errors import CollectionError
from posix_system_mcp.core.types import LoadAvgResult, NoArguments, ProcessInfoArgs, ProcessInfoResult
from posix_system_mcp.mcp.definitions import OPERATIONS, OperationSpec, get_operation
from posix_system_mcp.mcp.dispatcher import Dispatcher


class RecordingCollector:
    """Collector stand-in that records the normalized arguments it receives."""

    def __init__(self, result: Any = None, error: Exception | None = None):
        self.result = result
        self.error = error
        self.calls: List[Any] = []

    def __call__(self, args, options):
        self.calls.append((args, options))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def load_collector():
    return RecordingCollector(result=LoadAvgResult(load1=0.5, load5=0.25, load15=0.125))


@pytest.fixture
def failing_collector():
    return RecordingCollector(error=CollectionError("failed to get load average: boom"))


@pytest.fixture
def process_collector():
    return RecordingCollector(result=ProcessInfoResult(processes=[], count=0))


@pytest.fixture
def stub_operations(load_collector, failing_collector, process_collector):
    """The registry with three collectors swapped for in-memory stubs."""
    process_spec = get_operation("get_process_info")
    return [
        OperationSpec(
            name="get_load_average",
            description="stub",
            status_message="Load average retrieved",
            args_model=NoArguments,
            invoke=load_collector,
        ),
        OperationSpec(
            name="get_broken",
            description="stub",
            status_message="never",
            args_model=NoArguments,
            invoke=failing_collector,
        ),
        OperationSpec(
            name="get_process_info",
            description="stub",
            status_message="Process information retrieved",
            args_model=ProcessInfoArgs,
            invoke=process_collector,
            parameters=process_spec.parameters,
        ),
    ]


@pytest.fixture
def stub_dispatcher(stub_operations):
    return Dispatcher(operations=stub_operations)


@pytest.fixture
def dispatcher():
    return Dispatcher(operations=OPERATIONS)

