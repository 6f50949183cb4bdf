from unittest.mock import MagicMock

from extractor_app.browser_actions import (
    COPIED_RESET_MS,
    copy_button_html,
    csv_download_html,
    render_copy_button,
    render_csv_download,
)


def test_copy_button_escapes_text():
    html = copy_button_html('a "quote"\n</script><b>', "Copy", "Copied!")
    assert 'const text = "a \\"quote\\"\\n<\\/script><b>";' in html


def test_copied_label_only_set_after_successful_write():
    html = copy_button_html("hello", "Copy", "Copied!")
    click = html.index("addEventListener('click'")
    then = html.index(".then(")
    catch_log = html.index("console.error('Failed to copy:'")
    copied = html.index("btn.textContent = copiedLabel;")
    # write happens inside the click handler, the label flips in .then only
    assert click < html.index("navigator.clipboard.writeText(text)")
    assert then < copied < catch_log
    assert f"}}, {COPIED_RESET_MS});" in html
    # the failure branch only logs
    assert "copiedLabel" not in html[catch_log:]


def test_csv_download_names_file_at_click_time():
    html = csv_download_html('"Feature"\n"X"', "CSV")
    click = html.index("addEventListener('click'")
    assert html.index("Date.now()") > click
    assert '"extraction-" + Date.now() + \'.csv\'' in html
    assert 'type: "text/csv"' in html
    assert html.index("URL.revokeObjectURL(url)") > html.index("a.click()")


def test_render_passes_html_to_renderer():
    renderer = MagicMock()
    assert render_copy_button("hello", renderer=renderer)
    html = renderer.call_args[0][0]
    assert 'const text = "hello";' in html
    assert renderer.call_args[1] == {"height": 40}


def test_render_failure_is_logged_not_raised(caplog):
    renderer = MagicMock(side_effect=RuntimeError("no component"))
    assert render_csv_download("a", renderer=renderer) is False
    assert "Failed to render browser action" in caplog.text
