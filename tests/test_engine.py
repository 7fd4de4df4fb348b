"""Tests for the metrics engine."""

import io

import numpy as np
import pytest

from ent_metrics import AnalysisConfig, AnalysisMode, MetricsEngine, analyze, fold_case


class TestConfig:
    def test_defaults(self):
        c = AnalysisConfig()
        assert c.mode is AnalysisMode.BYTE
        assert not c.fold_case

    def test_from_flags(self):
        c = AnalysisConfig.from_flags(bits=True, fold_case=True)
        assert c.mode is AnalysisMode.BIT
        assert c.fold_case

    def test_immutable(self):
        with pytest.raises(AttributeError):
            AnalysisConfig().fold_case = True


class TestUniformInput:
    def test_all_byte_values_once(self):
        r = analyze(bytes(range(256)))
        assert r.entropy == 8.0
        assert r.chi_square == 0.0
        assert r.compression_percent == 0.0
        assert r.mean == 127.5
        assert r.degrees_of_freedom == 255
        assert r.samples == r.byte_count == 256

    def test_p_value_clamped_below_dof(self):
        r = analyze(bytes(range(256)))
        assert r.p_value == pytest.approx(0.5)
        assert r.p_value_clamped
        assert r.p_value_exact == pytest.approx(1.0)

    def test_bit_mode(self):
        r = analyze(bytes(range(256)), bits=True)
        assert r.mode is AnalysisMode.BIT
        assert r.samples == 2048
        assert r.degrees_of_freedom == 1
        assert r.entropy == pytest.approx(1.0)
        # mean stays byte based
        assert r.mean == 127.5


class TestDegenerateInput:
    def test_empty(self):
        r = analyze(b"")
        assert r.entropy == 0.0
        assert r.chi_square == 0.0
        assert r.compression_percent == 0.0
        assert r.p_value is None
        assert r.mean is None
        assert r.pi_estimate is None and r.pi_error_percent is None
        assert r.serial_correlation is None
        assert set(r.undefined) == {"p_value", "mean", "pi_estimate", "serial_correlation"}
        assert r.undefined["mean"] == "empty input"

    def test_constant(self):
        r = analyze(b"\x41" * 100)
        assert r.entropy == 0.0
        assert r.serial_correlation is None
        assert r.undefined["serial_correlation"] == "all values equal"
        assert not r.is_defined("serial_correlation")
        assert r.is_defined("mean")

    def test_constant_bits_depend_on_pattern(self):
        assert analyze(b"\xff" * 10, bits=True).entropy == 0.0
        assert analyze(b"\x0f" * 10, bits=True).entropy == pytest.approx(1.0)

    def test_short_for_pi(self):
        r = analyze(b"\x01\x02\x03\x04\x05")
        assert r.pi_estimate is None
        assert "6 bytes" in r.undefined["pi_estimate"]
        assert r.pi_groups is None
        assert r.serial_correlation is not None

    def test_single_byte(self):
        r = analyze(b"\x01")
        assert r.undefined["serial_correlation"] == "fewer than 2 bytes"

    def test_one_sided_constant(self):
        r = analyze(b"\x05\x05\x07")
        assert r.serial_correlation is None
        assert r.undefined["serial_correlation"] == "zero variance in leading or trailing values"

    def test_single_pi_group(self):
        rng = np.random.default_rng(11)
        for _ in range(20):
            r = analyze(rng.integers(0, 256, 6, dtype=np.uint8))
            assert r.pi_estimate in (0.0, 4.0)


class TestEngine:
    def test_idempotent(self):
        data = np.random.default_rng(2).integers(0, 256, 5000, dtype=np.uint8)
        engine = MetricsEngine(data)
        assert engine.calculate() == engine.calculate()

    def test_result_kept(self):
        engine = MetricsEngine(b"abc")
        assert engine.result is None
        r = engine.calculate()
        assert engine.result is r

    def test_owns_copy(self):
        src = bytearray(b"ABCDEF")
        engine = MetricsEngine(src, AnalysisConfig(fold_case=True))
        engine.calculate()
        assert src == bytearray(b"ABCDEF")
        assert engine.data.tobytes() == b"abcdef"

    def test_data_read_only(self):
        engine = MetricsEngine(b"abc")
        with pytest.raises(ValueError):
            engine.data[0] = 1

    def test_config_per_call(self):
        engine = MetricsEngine(b"hello world")
        assert engine.calculate(AnalysisConfig(mode=AnalysisMode.BIT)).mode is AnalysisMode.BIT
        assert engine.calculate().mode is AnalysisMode.BYTE

    def test_frequency_table_follows_config(self):
        engine = MetricsEngine(b"\x00\xff", AnalysisConfig(mode=AnalysisMode.BIT))
        assert list(engine.frequency_table().counts) == [8, 8]
        assert engine.frequency_table(AnalysisMode.BYTE).total == 2

    def test_from_path(self, tmp_path):
        p = tmp_path / "data.bin"
        p.write_bytes(bytes(range(256)) * 4)
        r = MetricsEngine.from_path(p).calculate()
        assert r.byte_count == 1024
        assert r.entropy == 8.0

    def test_from_stream(self):
        r = MetricsEngine.from_stream(io.BytesIO(b"\x00" * 12)).calculate()
        assert r.pi_estimate == 4.0
        assert r.mean == 0.0

    def test_to_dict(self):
        d = analyze(b"abc").to_dict()
        assert d["mode"] == "byte"
        assert d["byte_count"] == 3
        assert d["pi_groups"] is None


class TestFoldCase:
    def test_helper(self):
        out = fold_case(b"Hello, World! \xc1Z")
        assert out.tobytes() == b"hello, world! \xc1z"

    def test_fold_matches_lowercase_input(self):
        folded = analyze(b"The Quick Brown Fox JUMPS", fold_case=True)
        lower = analyze(b"the quick brown fox jumps")
        assert folded == lower

    def test_fold_changes_content_metrics(self):
        plain = analyze(b"AaBbCcDdEeFf")
        folded = analyze(b"AaBbCcDdEeFf", fold_case=True)
        assert folded.entropy < plain.entropy
        assert folded.mean != plain.mean

    def test_fold_keeps_pi_group_count(self):
        data = b"ABCDEFGHIJKLMNOPQRSTUVWXYZ"
        plain = analyze(data)
        folded = analyze(data, fold_case=True)
        assert plain.pi_groups == folded.pi_groups == 4

    def test_fold_applied_once(self):
        engine = MetricsEngine(b"ABC", AnalysisConfig(fold_case=True))
        first = engine.calculate()
        second = engine.calculate()
        assert first == second
        assert engine.data.tobytes() == b"abc"
