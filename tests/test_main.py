"""
Tests for the main entry point and CLI commands.

测试主入口文件和CLI命令的功能。
"""

import asyncio
import json
import sys
import pytest
from pathlib import Path
from unittest.mock import Mock, patch
from typer.testing import CliRunner

import yaml

from strav_kernel.application.application import Application, ApplicationState
from strav_kernel.core.interfaces.lifecycle import ServiceProvider
from strav_kernel.infrastructure.config.models import ApplicationConfig
from strav_kernel.main import build_application, cli, run_application
from strav_kernel.providers import ConfigProvider, LoggerProvider


class FlagProvider(ServiceProvider):
    """Provider recording whether it was booted and stopped."""

    name = "flag"

    def __init__(self) -> None:
        self.booted = False
        self.stopped = False

    async def boot(self, app: Application) -> None:
        self.booted = True

    async def shutdown(self, app: Application) -> None:
        self.stopped = True


PROVIDER_MODULE = '''
from strav_kernel.core.interfaces.lifecycle import ServiceProvider


class AuditProvider(ServiceProvider):
    name = "audit"
    dependencies = ["config"]
'''


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("STRAV_PROVIDERS", raising=False)
    monkeypatch.delenv("STRAV_LOG_LEVEL", raising=False)


@pytest.fixture
def provider_module(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    """Write an importable module holding a provider and return its import path."""
    (tmp_path / "audit_providers.py").write_text(PROVIDER_MODULE, encoding='utf-8')
    monkeypatch.syspath_prepend(str(tmp_path))
    monkeypatch.delitem(sys.modules, "audit_providers", raising=False)
    return "audit_providers:AuditProvider"


class TestMainCLI:
    """测试主CLI功能"""

    def setup_method(self) -> None:
        """测试前设置"""
        self.runner = CliRunner()

    def test_cli_help_command(self) -> None:
        """测试CLI帮助命令"""
        result = self.runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "Dependency injection container" in result.output
        assert "run" in result.output
        assert "graph" in result.output
        assert "init-config" in result.output

    @patch('strav_kernel.main.run_application', new_callable=Mock)
    @patch('strav_kernel.main.asyncio.run')
    @patch('strav_kernel.main.setup_logging')
    @patch('strav_kernel.main.ConfigLoader')
    def test_run_command_basic(self, mock_config_loader: Mock, mock_setup_logging: Mock,
                               mock_asyncio_run: Mock, mock_run_application: Mock) -> None:
        """测试基本运行命令"""
        config = ApplicationConfig()
        mock_config_loader.return_value.load_config.return_value = config

        result = self.runner.invoke(cli, ["run"])

        assert result.exit_code == 0
        mock_config_loader.return_value.load_config.assert_called_once_with(None)
        mock_setup_logging.assert_called_once_with(config.logging)
        mock_run_application.assert_called_once_with(config)
        mock_asyncio_run.assert_called_once_with(mock_run_application.return_value)

    @patch('strav_kernel.main.run_application', new_callable=Mock)
    @patch('strav_kernel.main.asyncio.run')
    @patch('strav_kernel.main.setup_logging')
    @patch('strav_kernel.main.ConfigLoader')
    def test_run_command_with_options(self, mock_config_loader: Mock, mock_setup_logging: Mock,
                                      mock_asyncio_run: Mock, mock_run_application: Mock) -> None:
        """测试带选项的运行命令"""
        config = ApplicationConfig()
        mock_config_loader.return_value.load_config.return_value = config

        result = self.runner.invoke(cli, ["run", "--config", "strav.yaml", "--log-level", "warning"])

        assert result.exit_code == 0
        mock_config_loader.return_value.load_config.assert_called_once_with("strav.yaml")
        assert config.logging.level == "WARNING"
        assert config.debug is False

    @patch('strav_kernel.main.run_application', new_callable=Mock)
    @patch('strav_kernel.main.asyncio.run')
    @patch('strav_kernel.main.setup_logging')
    @patch('strav_kernel.main.ConfigLoader')
    def test_run_command_debug(self, mock_config_loader: Mock, mock_setup_logging: Mock,
                               mock_asyncio_run: Mock, mock_run_application: Mock) -> None:
        """测试调试模式"""
        config = ApplicationConfig()
        mock_config_loader.return_value.load_config.return_value = config

        result = self.runner.invoke(cli, ["run", "--debug"])

        assert result.exit_code == 0
        assert config.debug is True
        assert config.logging.level == "DEBUG"

    @patch('strav_kernel.main.asyncio.run')
    @patch('strav_kernel.main.ConfigLoader')
    def test_run_command_config_error(self, mock_config_loader: Mock, mock_asyncio_run: Mock) -> None:
        """测试配置错误"""
        mock_config_loader.return_value.load_config.side_effect = FileNotFoundError("missing.yaml")

        result = self.runner.invoke(cli, ["run", "--config", "missing.yaml"])

        assert result.exit_code == 1
        assert "Configuration error" in result.output
        mock_asyncio_run.assert_not_called()

    @patch('strav_kernel.main.asyncio.run')
    def test_run_command_non_string_log_level(self, mock_asyncio_run: Mock, tmp_path: Path) -> None:
        """测试日志级别类型错误"""
        config_file = tmp_path / "strav.yaml"
        config_file.write_text(yaml.safe_dump({"logging": {"level": 10}}), encoding='utf-8')

        result = self.runner.invoke(cli, ["run", "--config", str(config_file)])

        assert result.exit_code == 1
        assert "Configuration error" in result.output
        mock_asyncio_run.assert_not_called()

    @patch('strav_kernel.main.run_application', new_callable=Mock)
    @patch('strav_kernel.main.asyncio.run', side_effect=RuntimeError("boot failed"))
    @patch('strav_kernel.main.setup_logging')
    @patch('strav_kernel.main.ConfigLoader')
    def test_run_command_application_failure(self, mock_config_loader: Mock, mock_setup_logging: Mock,
                                             mock_asyncio_run: Mock, mock_run_application: Mock) -> None:
        """测试应用启动失败"""
        mock_config_loader.return_value.load_config.return_value = ApplicationConfig()

        result = self.runner.invoke(cli, ["run"])

        assert result.exit_code == 1

    @patch('strav_kernel.main.run_application', new_callable=Mock)
    @patch('strav_kernel.main.asyncio.run', side_effect=KeyboardInterrupt)
    @patch('strav_kernel.main.setup_logging')
    @patch('strav_kernel.main.ConfigLoader')
    def test_run_command_keyboard_interrupt(self, mock_config_loader: Mock, mock_setup_logging: Mock,
                                            mock_asyncio_run: Mock, mock_run_application: Mock) -> None:
        """测试键盘中断"""
        mock_config_loader.return_value.load_config.return_value = ApplicationConfig()

        result = self.runner.invoke(cli, ["run"])

        assert result.exit_code == 0


class TestGraphCommand:
    """测试依赖图命令"""

    def setup_method(self) -> None:
        self.runner = CliRunner()

    def test_graph_default_providers(self) -> None:
        result = self.runner.invoke(cli, ["graph"])

        assert result.exit_code == 0
        assert result.output.splitlines() == ["1. config", "2. logger"]

    def test_graph_with_configured_provider(self, tmp_path: Path, provider_module: str) -> None:
        config_file = tmp_path / "strav.yaml"
        config_file.write_text(yaml.safe_dump({"providers": [provider_module]}), encoding='utf-8')

        result = self.runner.invoke(cli, ["graph", "--config", str(config_file)])

        assert result.exit_code == 0
        assert result.output.splitlines() == ["1. config", "2. logger", "3. audit"]

    def test_graph_bad_provider(self, tmp_path: Path) -> None:
        config_file = tmp_path / "strav.json"
        config_file.write_text(json.dumps({"providers": ["nowhere:Provider"]}), encoding='utf-8')

        result = self.runner.invoke(cli, ["graph", "-c", str(config_file)])

        assert result.exit_code == 1
        assert "Provider graph error" in result.output

    def test_graph_missing_config(self, tmp_path: Path) -> None:
        result = self.runner.invoke(cli, ["graph", "-c", str(tmp_path / "missing.yaml")])

    def test_graph_null_timeout(self, tmp_path: Path) -> None:
        config_file = tmp_path / "strav.yaml"
        config_file.write_text("shutdown_timeout:\n", encoding='utf-8')

        result = self.runner.invoke(cli, ["graph", "-c", str(config_file)])

        assert result.exit_code == 1
        assert "Provider graph error" in result.output
        assert "Invalid shutdown_timeout" in result.output

        assert result.exit_code == 1
        assert "Provider graph error" in result.output


class TestInitConfigCommand:
    """测试配置初始化命令"""

    def setup_method(self) -> None:
        self.runner = CliRunner()

    def test_init_config_yaml(self, tmp_path: Path) -> None:
        output = tmp_path / "strav.yaml"

        result = self.runner.invoke(cli, ["init-config", "--output", str(output)])

        assert result.exit_code == 0
        assert "Default configuration saved" in result.output
        data = yaml.safe_load(output.read_text(encoding='utf-8'))
        assert data['name'] == "Strav"
        assert data['providers'] == []

    def test_init_config_json(self, tmp_path: Path) -> None:
        output = tmp_path / "strav.json"

        result = self.runner.invoke(cli, ["init-config", "-o", str(output), "-f", "json"])

        assert result.exit_code == 0
        assert json.loads(output.read_text(encoding='utf-8'))['shutdown_timeout'] == 30.0

    def test_init_config_bad_format(self, tmp_path: Path) -> None:
        result = self.runner.invoke(cli, ["init-config", "-o", str(tmp_path / "x"), "-f", "ini"])

        assert result.exit_code == 1
        assert "Error saving configuration" in result.output


class TestBuildApplication:
    """测试应用构建"""

    def test_builtin_providers_first(self) -> None:
        app = build_application(ApplicationConfig())

        assert isinstance(app.providers[0], ConfigProvider)
        assert isinstance(app.providers[1], LoggerProvider)
        assert len(app.providers) == 2

    def test_configured_providers_appended(self, provider_module: str) -> None:
        config = ApplicationConfig(providers=[provider_module])

        app = build_application(config)

        assert [p.name for p in app.providers] == ["config", "logger", "audit"]
        assert app.config is config

    def test_bad_provider_path(self) -> None:
        with pytest.raises(ValueError):
            build_application(ApplicationConfig(providers=["nowhere:Provider"]))


class TestRunApplication:
    """测试应用运行函数"""

    async def test_returns_after_shutdown(self) -> None:
        provider = FlagProvider()
        app = Application(config=ApplicationConfig(handle_signals=False))
        app.use(provider)

        with patch('strav_kernel.main.build_application', return_value=app):
            task = asyncio.ensure_future(run_application(app.config))
            while not app.is_booted:
                await asyncio.sleep(0.01)

            assert provider.booted
            await app.shutdown()
            await asyncio.wait_for(task, timeout=1.0)

        assert provider.stopped
        assert app.state == ApplicationState.TERMINATED

    async def test_boot_failure_propagates(self) -> None:
        class BrokenProvider(ServiceProvider):
            name = "broken"

            async def boot(self, app: Application) -> None:
                raise RuntimeError("cannot boot")

        app = Application(config=ApplicationConfig(handle_signals=False))
        app.use(BrokenProvider())

        with patch('strav_kernel.main.build_application', return_value=app):
            with pytest.raises(RuntimeError, match="cannot boot"):
                await run_application(app.config)
