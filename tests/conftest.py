import pytest

SCENARIO_A = "STATES: 2\n0,0->0,1,R\n0,1->1,0,R\n1,0->1,1,L\n1,1->1,0,R STOP\n"

# Steps left once, lands on -1, then halts back on 0
LEFT_STEP = "STATES: 2\n0,0->1,1,L\n0,1->0,1,R\n1,0->0,1,R STOP\n1,1->1,1,R\n"

# 3-state busy beaver: 14 steps, six 1s
BUSY_BEAVER_3 = (
    "STATES: 3\n"
    "0,0->1,1,R\n"
    "0,1->0,1,R STOP\n"
    "1,0->2,0,R\n"
    "1,1->1,1,R\n"
    "2,0->2,1,L\n"
    "2,1->0,1,L\n"
)


@pytest.fixture
def write_file(tmp_path):
    def _write(name, content):
        path = tmp_path / name
        if isinstance(content, str):
            content = content.encode("ascii")
        path.write_bytes(content)
        return path

    return _write
