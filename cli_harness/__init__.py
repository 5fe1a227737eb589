from cli_harness.config import HarnessConfig, load_config
from cli_harness.environment import get_clean_environment
from cli_harness.fallback_server import FallbackServer
from cli_harness.fixtures import get_sql_file_path, safe_delete_file, tmp_dir, with_tmp_dir
from cli_harness.normalize import clean_std_output, extract_uuids
from cli_harness.process import (
    CliResult,
    ProcessHandle,
    WizardResult,
    run_cli,
    run_wizard_cli,
    write_all_inputs,
)
from cli_harness.servers import ProcessOutputError, ServerProcess, start_fallback_server, start_server
from cli_harness.wait import ConditionNotMet, wait_for_condition, wait_until

__all__ = [
    "CliResult",
    "ConditionNotMet",
    "FallbackServer",
    "HarnessConfig",
    "ProcessHandle",
    "ProcessOutputError",
    "ServerProcess",
    "WizardResult",
    "clean_std_output",
    "extract_uuids",
    "get_clean_environment",
    "get_sql_file_path",
    "load_config",
    "run_cli",
    "run_wizard_cli",
    "safe_delete_file",
    "start_fallback_server",
    "start_server",
    "tmp_dir",
    "wait_for_condition",
    "wait_until",
    "with_tmp_dir",
    "write_all_inputs",
]
