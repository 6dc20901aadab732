from errtrail.correlation import CorrelationContext, extract_correlation_ids


def test_with_methods_return_new_contexts():
    base = CorrelationContext()
    ctx = base.with_request_id("req-1").with_user_id("u-1")
    assert ctx.request_id == "req-1"
    assert ctx.user_id == "u-1"
    assert ctx.session_id == ""
    assert base.request_id == ""


def test_with_session_and_trace():
    ctx = CorrelationContext().with_session_id("s-1").with_trace_id("t-1")
    assert (ctx.session_id, ctx.trace_id) == ("s-1", "t-1")


def test_extract_from_context_only():
    ctx = CorrelationContext("req-1", "s-1", "u-1", "t-1")
    assert extract_correlation_ids(ctx, None) == ("req-1", "s-1", "u-1", "t-1")


def test_metadata_overrides_non_empty_values():
    ctx = CorrelationContext("req-1", "s-1", "u-1", "t-1")
    ids = extract_correlation_ids(ctx, {"request_id": "req-meta", "session_id": ""})
    assert ids.request_id == "req-meta"
    assert ids.session_id == "s-1"
    assert ids.trace_id == "t-1"


def test_nothing_given_yields_empty_ids():
    assert extract_correlation_ids(None, None) == ("", "", "", "")


def test_metadata_only():
    ids = extract_correlation_ids(None, {"user_id": "u-9", "trace_id": "t-9"})
    assert ids.user_id == "u-9"
    assert ids.trace_id == "t-9"
    assert ids.request_id == ""