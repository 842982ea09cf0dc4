from smart_charging.config import Settings


def test_optimizer_settings_from_environment(monkeypatch):
    monkeypatch.setenv("OPTIMIZER_URL", "https://optimizer.example.com/api/v1/optimize")
    monkeypatch.setenv("OPTIMIZER_USER", "smart")
    monkeypatch.setenv("OPTIMIZER_PASSWORD", "charging")
    monkeypatch.setenv("STICKY_LIMITATION", "false")
    monkeypatch.setenv("LIMIT_BUFFER_AC", "15")

    optimizer_settings = Settings().optimizer_settings()

    assert optimizer_settings.optimizerUrl == "https://optimizer.example.com/api/v1/optimize"
    assert optimizer_settings.user == "smart"
    assert optimizer_settings.password == "charging"
    assert optimizer_settings.stickyLimitation is False
    assert optimizer_settings.limitBufferAC == 15
    assert optimizer_settings.limitBufferDC == 20
    assert optimizer_settings.dcDefaultEfficiencyPercent == 80
    assert optimizer_settings.defaultScheduleMaxPeriods == 20
