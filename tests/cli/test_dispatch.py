import pytest

from dbentry.cli.dispatch import Invocation, Operation, resolve


@pytest.mark.parametrize(
    "argv,expected",
    [
        ([], Invocation(Operation.SERVE, [])),
        (["--max-connections=200"], Invocation(Operation.SERVE, ["--max-connections=200"])),
        (["--help"], Invocation(Operation.SERVE, ["--help"])),
        (["replica", "--read-only"], Invocation(Operation.REPLICA, ["--read-only"])),
        (["health"], Invocation(Operation.HEALTH, [])),
        (["onChange", "x"], Invocation(Operation.ON_CHANGE, ["x"])),
        (["dump", "/backup/all.sql"], Invocation(Operation.DUMP, ["/backup/all.sql"])),
        (["ls", "-la"], Invocation(Operation.EXEC, ["ls", "-la"])),
        (["mysqld", "--skip-grant-tables"], Invocation(Operation.EXEC, ["mysqld", "--skip-grant-tables"])),
    ],
)
def test_resolve(argv, expected):
    assert resolve(argv) == expected


def test_operation_names_are_case_sensitive():
    assert resolve(["Health"]).operation is Operation.EXEC
    assert resolve(["onchange"]).operation is Operation.EXEC
