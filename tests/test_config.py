import pytest

from schtree import config as sch_config


def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in [
        "SCHTREE_BACKEND",
        "SCHTREE_PRECISION",
        "SCHTREE_ENABLE_NUMBA",
        "SCHTREE_LOG_LEVEL",
        "SCHTREE_WORKERS",
        "SCHTREE_LEAF_FRACTION",
        "SCHTREE_MIN_LEAF_SIZE",
    ]:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _reset_cache():
    sch_config.reset_runtime_config_cache()
    yield
    sch_config.reset_runtime_config_cache()


def test_runtime_config_defaults(monkeypatch: pytest.MonkeyPatch):
    _clear_env(monkeypatch)

    runtime = sch_config.runtime_config()

    assert runtime.backend == "numpy"
    assert runtime.precision == "float64"
    assert runtime.jax_enable_x64 is True
    assert runtime.enable_numba is False
    assert runtime.log_level == "INFO"
    assert runtime.workers is None
    assert runtime.leaf_fraction == pytest.approx(0.01)
    assert runtime.min_leaf_size == 10


def test_precision_override(monkeypatch: pytest.MonkeyPatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("SCHTREE_PRECISION", "float32")

    runtime = sch_config.runtime_config()

    assert runtime.precision == "float32"
    assert runtime.jax_enable_x64 is False


def test_invalid_backend(monkeypatch: pytest.MonkeyPatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("SCHTREE_BACKEND", "invalid-backend")

    with pytest.raises(ValueError):
        sch_config.runtime_config()


def test_invalid_precision(monkeypatch: pytest.MonkeyPatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("SCHTREE_PRECISION", "float16")

    with pytest.raises(ValueError):
        sch_config.runtime_config()


def test_numba_flag_and_workers(monkeypatch: pytest.MonkeyPatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("SCHTREE_ENABLE_NUMBA", "yes")
    monkeypatch.setenv("SCHTREE_WORKERS", "3")

    runtime = sch_config.runtime_config()

    assert runtime.enable_numba is True
    assert runtime.workers == 3


@pytest.mark.parametrize(
    "key,value",
    [
        ("SCHTREE_WORKERS", "0"),
        ("SCHTREE_WORKERS", "many"),
        ("SCHTREE_LEAF_FRACTION", "0"),
        ("SCHTREE_LEAF_FRACTION", "1.5"),
        ("SCHTREE_MIN_LEAF_SIZE", "-2"),
    ],
)
def test_rejects_invalid_numbers(monkeypatch: pytest.MonkeyPatch, key: str, value: str):
    _clear_env(monkeypatch)
    monkeypatch.setenv(key, value)

    with pytest.raises(ValueError):
        sch_config.runtime_config()


def test_leaf_size_overrides(monkeypatch: pytest.MonkeyPatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("SCHTREE_LEAF_FRACTION", "0.05")
    monkeypatch.setenv("SCHTREE_MIN_LEAF_SIZE", "4")

    runtime = sch_config.runtime_config()

    assert runtime.leaf_fraction == pytest.approx(0.05)
    assert runtime.min_leaf_size == 4
