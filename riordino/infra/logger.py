# riordino/infra/logger.py
"""
Logging for the reorder system.

Configures one file logger per concern (transactions, imports, proposals,
database, system) and exposes small helpers that the use cases call around
every state-changing operation.
"""

import logging
from pathlib import Path
from typing import Dict, Any, Optional


# Global switch for logging
ENABLE_LOGGING = False
# Global switch for console output
ENABLE_OUTPUT = False


def print_system(*args, **kwargs):
    """Print gated by ENABLE_OUTPUT."""
    if ENABLE_OUTPUT:
        print(*args, **kwargs)


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logger(name: str, log_file: str, level: int = logging.INFO) -> logging.Logger:
    """
    Configure a named logger writing to ``log_file``.

    The file itself is only opened on the first record.

    Args:
        name: Logger name
        log_file: Log file path
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        The configured logger
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    while logger.handlers:
        logger.removeHandler(logger.handlers[0])

    file_handler = logging.FileHandler(log_file, encoding='utf-8', delay=True)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(file_handler)

    return logger


# Log directory (inside the package)
BASE_DIR = Path(__file__).parent.parent
LOGS_DIR = BASE_DIR / "logs"

LOG_FILES = {
    "transactions": LOGS_DIR / "transactions.log",
    "imports": LOGS_DIR / "imports.log",
    "proposals": LOGS_DIR / "proposals.log",
    "database": LOGS_DIR / "database.log",
    "system": LOGS_DIR / "system.log",
}

transaction_logger = setup_logger('riordino.transactions', str(LOG_FILES["transactions"]))
import_logger = setup_logger('riordino.imports', str(LOG_FILES["imports"]))
proposal_logger = setup_logger('riordino.proposals', str(LOG_FILES["proposals"]))
database_logger = setup_logger('riordino.database', str(LOG_FILES["database"]))
system_logger = setup_logger('riordino.system', str(LOG_FILES["system"]))


def log_transaction(operation: str, data: Dict[str, Any], result: Optional[Any] = None, error: Optional[str] = None) -> None:
    """
    Record a whole use-case run.

    Args:
        operation: Operation name (ingest, approve, set_active_policy, ...)
        data: Operation input
        result: Operation result (optional)
        error: Error message (optional)
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    if error:
        transaction_logger.error(f"TRANSACTION_FAILED: {operation} - {error} - Data: {data}")
    else:
        transaction_logger.info(f"TRANSACTION_SUCCESS: {operation} - Result: {result} - Data: {data}")


def log_import(action: str, code: str, precodice: Optional[str] = None, **kwargs) -> None:
    """
    Import-row events (create, update, warning, failed).

    Args:
        action: What happened to the row
        code: Item code
        precodice: Item precodice (optional)
        **kwargs: Extra data
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {"action": action, "code": code, "precodice": precodice, **kwargs}
    level = logging.WARNING if action in ("warning", "failed") else logging.INFO
    import_logger.log(level, f"IMPORT_{action.upper()}: {log_data}")


def log_proposal(action: str, lines: int = 0, **kwargs) -> None:
    """
    Draft proposal events (generate, update_qty, remove, clear, approve).

    Args:
        action: Lifecycle transition
        lines: Number of lines in the draft after the action
        **kwargs: Extra data
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {"action": action, "lines": lines, **kwargs}
    proposal_logger.info(f"PROPOSAL_{action.upper()}: {log_data}")


def log_database_operation(table: str, operation: str, affected_rows: int = 0, **kwargs) -> None:
    """
    Database operations.

    Args:
        table: Table name
        operation: SQL operation (INSERT, UPDATE, DELETE, SELECT)
        affected_rows: Number of affected rows
        **kwargs: Extra data
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {"table": table, "operation": operation, "affected_rows": affected_rows, **kwargs}
    database_logger.info(f"DB_{operation}: {log_data}")


def log_system_event(event: str, details: Dict[str, Any] = None, level: str = "info") -> None:
    """
    System events.

    Args:
        event: Event name
        details: Extra details (optional)
        level: Log level (info, warning, error)
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {"event": event, "details": details or {}}
    print_system(f"[{level}] {event}: {details or {}}")
    log_method = getattr(system_logger, level.lower(), system_logger.info)
    log_method(f"SYSTEM_EVENT: {event} - {log_data}")


def log_file_operation(operation: str, file_path: str, rows_processed: int = 0, **kwargs) -> None:
    """
    File operations (import/export).

    Args:
        operation: Operation type (import, export)
        file_path: File path
        rows_processed: Number of processed rows
        **kwargs: Extra data
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {"operation": operation, "file_path": file_path, "rows_processed": rows_processed, **kwargs}
    system_logger.info(f"FILE_{operation.upper()}: {log_data}")


def get_log_summary(log_type: str = "transactions", lines: int = 100) -> Optional[str]:
    """
    Return the most recent lines of a log.

    Args:
        log_type: Log name (transactions, imports, proposals, database, system)
        lines: Number of lines to return

    Returns:
        Log content as a string
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return None

    log_file = LOG_FILES.get(log_type)
    if not log_file or not log_file.exists():
        return f"Log {log_type} non trovato."

    try:
        with open(log_file, 'r', encoding='utf-8') as f:
            all_lines = f.readlines()
    except OSError as e:
        return f"Errore nella lettura del log {log_type}: {e}"
    return ''.join(all_lines[-lines:])
