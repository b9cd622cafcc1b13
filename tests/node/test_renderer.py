from pathlib import Path
import textwrap

import pytest

from dbentry.errors import ConfigurationError
from dbentry.node.renderer import (
    ConfigRenderer,
    HostFacts,
    default_buffer_pool_size,
    read_mem_total_kb,
    rewrite_settings,
    server_id_for,
)

MY_CNF = textwrap.dedent("""\
    [client]
    socket=/var/run/mysqld/mysqld.sock

    [mysqld]
    datadir=/var/lib/mysql
    innodb_buffer_pool_size = 128M
    server-id=1
    report-host=localhost
    log-bin=mysql-bin
    # server-id=99
""")


@pytest.mark.parametrize(
    "mem_kb,expected",
    [
        (16384000, "11200M"),   # 16000 MB
        (2048000, "1400M"),     # 2000 MB
        (1024, "1M"),           # 0.7 rounds up
        (8000000, "5469M"),     # 7812.5 MB * 0.7 = 5468.75
    ],
)
def test_default_buffer_pool_is_seventy_percent(mem_kb, expected):
    assert default_buffer_pool_size(mem_kb) == expected


@pytest.mark.parametrize("mem_kb", [None, 0])
def test_unknown_memory_fails_fast(mem_kb):
    with pytest.raises(ConfigurationError):
        default_buffer_pool_size(mem_kb)


def test_server_id_is_hex_prefix_and_deterministic():
    assert server_id_for("3f2a9c0e11d4") == 0x3F2A
    assert server_id_for("3f2a9c0e11d4") == server_id_for("3f2a9c0e11d4")
    assert server_id_for("ffff") == 65535


@pytest.mark.parametrize("hostname", ["mysql-0", "", "zz12"])
def test_non_hex_hostname_is_rejected(hostname):
    with pytest.raises(ConfigurationError):
        server_id_for(hostname)


def test_read_mem_total_kb(tmp_path: Path):
    meminfo = tmp_path / "meminfo"
    meminfo.write_text("MemTotal:       16384000 kB\nMemFree:         1234 kB\n")
    assert read_mem_total_kb(meminfo) == 16384000

    meminfo.write_text("MemFree: 1234 kB\n")
    assert read_mem_total_kb(meminfo) is None

    meminfo.write_text("MemTotal: lots kB\n")
    assert read_mem_total_kb(meminfo) is None

    assert read_mem_total_kb(tmp_path / "missing") is None


def test_render_rewrites_managed_keys_only(tmp_path: Path):
    cnf = tmp_path / "my.cnf"
    cnf.write_text(MY_CNF)
    facts = HostFacts(hostname="3f2a9c0e11d4", mem_total_kb=16384000)

    node = ConfigRenderer(cnf).render(facts, Path("/var/lib/mysql"))

    assert node.buffer_pool_size == "11200M"
    assert node.server_id == 0x3F2A
    assert node.report_host == "3f2a9c0e11d4"
    assert node.data_dir == Path("/var/lib/mysql")

    text = cnf.read_text()
    assert "innodb_buffer_pool_size = 11200M\n" in text
    assert "server-id=16170\n" in text
    assert "report-host=3f2a9c0e11d4\n" in text
    # untouched
    assert "datadir=/var/lib/mysql\n" in text
    assert "log-bin=mysql-bin\n" in text
    assert "# server-id=99\n" in text
    assert "[client]\nsocket=/var/run/mysqld/mysqld.sock\n" in text


def test_render_is_idempotent(tmp_path: Path):
    cnf = tmp_path / "my.cnf"
    cnf.write_text(MY_CNF)
    facts = HostFacts(hostname="3f2a9c0e11d4", mem_total_kb=16384000)
    renderer = ConfigRenderer(cnf)

    renderer.render(facts, Path("/data"))
    first = cnf.read_text()
    node = renderer.build(facts, Path("/data"))

    assert renderer.write(node) is False
    assert cnf.read_text() == first


def test_override_is_used_verbatim_even_without_meminfo(tmp_path: Path):
    cnf = tmp_path / "my.cnf"
    cnf.write_text(MY_CNF)
    facts = HostFacts(hostname="abcd", mem_total_kb=None)

    node = ConfigRenderer(cnf).render(facts, Path("/data"), override="3G")

    assert node.buffer_pool_size == "3G"
    assert "innodb_buffer_pool_size = 3G\n" in cnf.read_text()


def test_rerender_after_resize_updates_value(tmp_path: Path):
    cnf = tmp_path / "my.cnf"
    cnf.write_text(MY_CNF)
    renderer = ConfigRenderer(cnf)

    renderer.render(HostFacts("abcd", 2048000), Path("/data"))
    renderer.render(HostFacts("abcd", 16384000), Path("/data"))

    assert "innodb_buffer_pool_size = 11200M\n" in cnf.read_text()
    assert "1400M" not in cnf.read_text()


def test_missing_keys_go_into_mysqld_section():
    text = "[client]\nport=3306\n\n[mysqld]\ndatadir=/var/lib/mysql\n"
    out = rewrite_settings(text, {"server-id": "7", "report-host": "h"})
    assert out == (
        "[client]\nport=3306\n\n[mysqld]\nserver-id=7\nreport-host=h\ndatadir=/var/lib/mysql\n"
    )


def test_missing_mysqld_section_is_appended():
    out = rewrite_settings("[client]\nport=3306", {"server-id": "7"})
    assert out == "[client]\nport=3306\n[mysqld]\nserver-id=7\n"


def test_missing_config_file_is_a_configuration_error(tmp_path: Path):
    renderer = ConfigRenderer(tmp_path / "absent.cnf")
    with pytest.raises(ConfigurationError):
        renderer.render(HostFacts("abcd", 2048000), Path("/data"))


def test_underscore_spelling_is_rewritten_in_place():
    text = "[mysqld]\nserver_id=1\nreport_host = old\ninnodb-buffer-pool-size=128M\n"
    out = rewrite_settings(
        text, {"innodb_buffer_pool_size": "1400M", "server-id": "42", "report-host": "h"}
    )
    assert out == "[mysqld]\nserver_id=42\nreport_host = h\ninnodb-buffer-pool-size=1400M\n"


def test_undecodable_config_file_is_a_configuration_error(tmp_path: Path):
    cnf = tmp_path / "my.cnf"
    cnf.write_bytes(b"[mysqld]\n\xff\xfe\n")
    with pytest.raises(ConfigurationError, match="cannot read"):
        ConfigRenderer(cnf).render(HostFacts("abcd", 2048000), Path("/data"))
