from sqlnest.exceptions import (
    DatabaseConnectionError,
    ImproperConfigurationError,
    MissingDependencyError,
    MissingParameterError,
    ParameterError,
    ParameterStyleMismatchError,
    SQLNestError,
    TransactionError,
    UnknownParameterError,
)


def test_exception_hierarchy() -> None:
    assert issubclass(UnknownParameterError, ParameterError)
    assert issubclass(MissingParameterError, ParameterError)
    assert issubclass(ParameterError, SQLNestError)
    assert issubclass(ParameterStyleMismatchError, SQLNestError)
    assert issubclass(TransactionError, SQLNestError)
    assert issubclass(DatabaseConnectionError, SQLNestError)
    assert issubclass(ImproperConfigurationError, SQLNestError)
    assert issubclass(MissingDependencyError, ImportError)


def test_exception_messages() -> None:
    assert str(TransactionError("Rollback error : There is no transaction started")) == (
        "Rollback error : There is no transaction started"
    )
    assert repr(TransactionError("nope")) == "TransactionError - nope"
    assert str(DatabaseConnectionError("refused", name="main")) == "refused (Connection: main)"
    assert str(UnknownParameterError("Invalid parameter", "SELECT 1")) == "Invalid parameter\nSQL: SELECT 1"
    assert "mixed" in str(ParameterStyleMismatchError())
    assert "pip install sqlnest[psycopg]" in str(MissingDependencyError("psycopg"))


def test_exception_chaining() -> None:
    try:
        try:
            raise OSError("disk")
        except OSError as e:
            raise DatabaseConnectionError("could not open") from e
    except DatabaseConnectionError as exc:
        assert isinstance(exc.__cause__, OSError)
        assert exc.name is None
