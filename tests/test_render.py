from assistant.render import has_markdown, harden_links, render_markdown


def test_markdown_is_converted_to_allowed_html():
    html = render_markdown("# Title\n\n**bold** and *italic*\n\n- one\n- two")
    assert "<h1>Title</h1>" in html
    assert "<strong>bold</strong>" in html
    assert "<em>italic</em>" in html
    assert "<li>one</li>" in html


def test_links_open_in_new_tab_without_opener():
    html = render_markdown("See [the portal](https://intranet.example.com).")
    assert 'href="https://intranet.example.com"' in html
    assert 'target="_blank"' in html
    assert 'rel="noopener noreferrer"' in html


def test_script_tags_and_handlers_are_removed():
    html = render_markdown('<script>alert(1)</script>\n\n<img src=x onerror="alert(2)">')
    assert "<script" not in html
    assert "<img" not in html
    assert "onerror" not in html


def test_javascript_urls_are_dropped():
    html = render_markdown("[click](javascript:alert(1))")
    assert "javascript:" not in html


def test_harden_links_leaves_other_tags_alone():
    assert harden_links("<p><abbr>x</abbr></p>") == "<p><abbr>x</abbr></p>"


def test_has_markdown():
    assert has_markdown("**a**", "<p><strong>a</strong></p>") is True
    assert has_markdown("plain", "plain") is False
