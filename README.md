# errtrail

Structured application errors that you can trace after the fact.

Every error made with `errtrail` is an exception (`errtrail.errors.Error`)
with a self-describing ID that encodes when it happened, its domain, the
operation, its severity and its status, e.g.

```
689072FD-api-n/a-2-500
```

The error is also recorded in a process-wide, in-memory registry together with
the file, line and function that created it, an optional (path-shortened)
stack trace, the environment (`$ENVIRONMENT`, `$ENV`, else `development`) and
version (`$VERSION`, `$APP_VERSION`, else `unknown`) of the running
application, and any correlation IDs (request, session, user, trace). You can
later look the record up by ID, search for records, and hook callbacks onto
every new error.

No third-party dependencies are needed; Python 3.10 or later.

## Creating errors

```python
from errtrail.errors import new_api_error, new_validation_error
from errtrail.api import get_error_id, is_status, print_error_details

err = new_api_error(404, "HTTP_404", "No such order",
                    {"endpoint": "/orders", "method": "GET"})

assert is_status(err, 404)
print_error_details(get_error_id(err))
```

`new_api_error` records status codes of 500 and above as high severity, 400
and above as medium, anything else as low. Other helpers fix the domain,
severity and status: `new_auth_error` (auth, medium, 401), `new_db_error`
(database, high, 500), `new_critical_error` (critical, 500) and
`new_validation_error` (validation, medium, 400). For full control use
`new_error(domain, severity, status, code, message, metadata)`, or
`wrap_error(underlying, ...)` to attach an underlying exception (it becomes
the error's `__cause__`). Each has a `..._with_context` variant taking a
`CorrelationContext` first.

If the metadata carries an `"operation"` entry, it appears in the error ID.
`parse_id` splits an ID back into a `(timestamp, domain, ops, severity,
status)` tuple and raises `ValueError` for a malformed one; `generate_id`
builds one.

`str(err)` gives `ID [domain:SEVERITY:status:code] message`, followed by
`: <underlying>` when wrapped; `err.detail()` adds the stack. `err.to_dict()`
and `Error.from_dict()` convert to and from a JSON-ready mapping.

`is_status`, `is_code`, `is_domain`, `is_severity` and `get_error_id` look
for the first `Error` along an exception's `__cause__`/`__context__` chain.

### Critical errors end the process

Registered errors are logged by severity; critical ones go to the logger's
`fatal` method, and both provided loggers raise `SystemExit(1)` there. To keep
running after a critical error, install a logger whose `fatal` does not exit
(see below).

## Correlation IDs

```python
from errtrail.correlation import CorrelationContext
from errtrail.errors import new_auth_error_with_context

ctx = CorrelationContext().with_request_id("req-1").with_user_id("user-42")
err = new_auth_error_with_context(ctx, "AUTH_001", "Login failed", None)
```

Non-empty IDs in the metadata (`request_id`, `session_id`, `user_id`,
`trace_id`) take precedence over the ones in the context.

## Looking errors up

```python
from errtrail.api import ErrorNotFound, lookup_error, search_errors
from errtrail.consts import Domain
from errtrail.records import SearchCriteria

record = lookup_error(error_id)          # raises ErrorNotFound if unknown
api_errors = search_errors(SearchCriteria(domain=Domain.API))
```

`search_errors` and `search_errors_with_pagination` (with
`PaginationOptions(offset, limit)`, returning a `SearchResult`) search by the
first criterion set, in the order domain, severity, code, status, user ID,
request ID. With none set, the records whose domain is empty are returned.
`ErrorRecord.to_dict()` / `to_json()` serialise a record; in debug mode or for
high and critical severities the location and stack move into `debug_info`.

## Callbacks, domains, severities, configuration and logging

```python
from errtrail.api import add_domain, register_error_callback, set_global_logger
from errtrail.logs import LoggingLogger

register_error_callback("alert", lambda record: print("new error:", record.id))
add_domain("billing")
set_global_logger(LoggingLogger())
```

Callbacks run in background threads, synchronously, or synchronously only for
critical errors, according to `Config.callback_mode` (`get_config` /
`set_config`). A callback that raises is reported on stdout and otherwise
ignored. Unknown domains and severities are accepted but logged as warnings.
`StdLogger` writes `[LEVEL] message {fields}` lines to a stream (stderr by
default); `LoggingLogger` forwards to a `logging.Logger`. Subclass
`errtrail.logs.Logger` for your own.

Output sinks (`errtrail.records.OutputSink`, listed in
`Config.output_sinks`) receive every registered record from a background
thread; `NullOutputSink` discards them. An `ErrorRegistry` can also be used
on its own, as a context manager that closes its sinks on exit;
`errtrail.state.reset()` replaces the shared one.

## WSGI helpers

`error_middleware(app)` wraps a WSGI application so that an unhandled
exception is recorded as a critical system error, printed, and answered with
`500 Internal Server Error`. `render_error_page(...)` returns a status and a
simple HTML error page.

## Demo

```
errtrail-demo --port 8080
```

prints a parsed example ID, sets debug mode unless `$APP_ENV` is
`production`, and serves `/error-demo` (records a 500 API error and prints its
details) and `/error-page` (an HTML 404 page) until interrupted.

## What it does not do

Records live only in memory for the life of the process; nothing is written
to disk unless you supply an output sink that does so. The registry's file
name is kept but not used, and the configuration's ID format, retry and
indexing settings do not change behaviour.