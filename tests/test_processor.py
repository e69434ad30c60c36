"""Tests for aggregate CPU utilization."""

import pytest

from proctop.errors import SourceUnavailableError, UnexpectedFormatError
from proctop.processor import ProcessorSample


class TestProcessorSample:
    """Tests for ProcessorSample.utilization()."""

    def test_first_call_is_average_since_boot(self, fake_proc):
        """Test total=1000, idle=400 on a fresh sample gives 0.6."""
        fake_proc.set_cpu(user=300, system=300, idle=400)
        cpu = ProcessorSample(fake_proc.procfs())

        assert cpu.utilization() == pytest.approx(0.6)
        assert cpu.previous_total_ticks == 1000
        assert cpu.previous_idle_ticks == 400

    def test_second_call_uses_deltas(self, fake_proc):
        """Test total=1500, idle=550 after the first call gives 0.7."""
        fake_proc.set_cpu(user=300, system=300, idle=400)
        cpu = ProcessorSample(fake_proc.procfs())
        cpu.utilization()

        fake_proc.set_cpu(user=500, system=450, idle=550)

        assert cpu.utilization() == pytest.approx(0.7)
        assert cpu.previous_total_ticks == 1500
        assert cpu.previous_idle_ticks == 550

    def test_all_active_components_count(self, fake_proc):
        """Test nice, irq, softirq and steal are active time and iowait is idle time."""
        fake_proc.set_cpu(nice=100, irq=100, softirq=100, steal=100, iowait=200, idle=400)
        cpu = ProcessorSample(fake_proc.procfs())

        assert cpu.utilization() == pytest.approx(0.4)
        assert cpu.previous_idle_ticks == 600

    def test_no_elapsed_ticks_returns_previous_value(self, fake_proc):
        """Test two polls within one tick repeat the last value and keep the counters."""
        fake_proc.set_cpu(user=300, system=300, idle=400)
        cpu = ProcessorSample(fake_proc.procfs())
        first = cpu.utilization()

        assert cpu.utilization() == first
        assert cpu.previous_total_ticks == 1000

    def test_no_ticks_before_first_measurement(self, fake_proc):
        """Test an all-zero counter line reports 0.0."""
        cpu = ProcessorSample(fake_proc.procfs())

        assert cpu.utilization() == 0.0
        assert cpu.previous_total_ticks == 0

    def test_missing_source_is_fatal(self, fake_proc):
        """Test an unopenable stat file raises SourceUnavailableError."""
        (fake_proc.root / "stat").unlink()
        cpu = ProcessorSample(fake_proc.procfs())

        with pytest.raises(SourceUnavailableError):
            cpu.utilization()

    def test_malformed_source_is_fatal(self, fake_proc):
        """Test a malformed first line raises UnexpectedFormatError."""
        (fake_proc.root / "stat").write_text("cpu garbage\n")
        cpu = ProcessorSample(fake_proc.procfs())

        with pytest.raises(UnexpectedFormatError):
            cpu.utilization()
