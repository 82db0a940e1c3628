"""Static HTML for the dashboard and the commit log view."""

from html import escape
from typing import Dict, Iterable, Tuple

from .git_ops.operations import CommitLogEntry

# command name -> (icon, title, description)
DASHBOARD_ACTIONS: Dict[str, Tuple[str, str, str]] = {
    "publish": ("&#128640;", "Publish Repo", "Initialize &amp; push to a new remote"),
    "clone": ("&#128229;", "Clone Repo", "Download from URL"),
    "commit": ("&#129302;", "AI Smart Commit", "Generate messages &amp; push"),
    "graph": ("&#128202;", "Show Graph", "View commit history"),
    "ignore": ("&#128683;", "Ignore Files", "Add entries to .gitignore"),
    "set-key": ("&#128273;", "Set API Key", "Store the AI service key"),
}

_DASHBOARD_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Git Helper Dashboard</title>
    <style>
        body {{ font-family: sans-serif; padding: 20px; display: flex; flex-direction: column; align-items: center; }}
        h1 {{ margin-bottom: 30px; }}
        .grid {{ display: grid; grid-template-columns: repeat(2, 1fr); gap: 20px; max-width: 600px; width: 100%; }}
        .card {{ padding: 20px; border-radius: 8px; cursor: pointer; text-align: center; border: 1px solid #ccc; transition: transform 0.2s; }}
        .card:hover {{ transform: translateY(-5px); }}
        .card h3 {{ margin: 0 0 10px 0; }}
        .card p {{ font-size: 0.9em; opacity: 0.8; }}
        .icon {{ font-size: 2em; margin-bottom: 10px; display: block; }}
    </style>
</head>
<body>
    <h1>Git Helper Dashboard</h1>
    <div class="grid">
{cards}
    </div>
    <script>
        function trigger(command) {{
            const message = {{ command: command }};
            if (typeof acquireVsCodeApi === "function") {{
                acquireVsCodeApi().postMessage(message);
            }} else if (window.parent) {{
                window.parent.postMessage(message, "*");
            }}
        }}
    </script>
</body>
</html>"""

_CARD_TEMPLATE = """        <div class="card" onclick="trigger('{command}')">
            <span class="icon">{icon}</span>
            <h3>{title}</h3>
            <p>{description}</p>
        </div>"""

_GRAPH_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Commit Logs</title>
    <style>
        body {{ font-family: monospace; padding: 20px; }}
        h2 {{ border-bottom: 1px solid #ccc; padding-bottom: 10px; margin-bottom: 20px; }}
        table {{ width: 100%; border-collapse: collapse; }}
        th, td {{ text-align: left; padding: 8px 12px; }}
        .commit-row {{ border-left: 2px solid #ccc; }}
        .commit-row:hover {{ border-left: 2px solid #007acc; }}
        .hash {{ padding: 2px 6px; border-radius: 4px; background: #eee; }}
        .marker {{ display: inline-block; width: 8px; height: 8px; background-color: #007acc; border-radius: 50%; margin-right: 10px; }}
        .message {{ font-weight: 600; }}
        .author {{ font-weight: bold; }}
        .date {{ font-size: 0.85em; opacity: 0.7; }}
        .hash-col {{ width: 80px; vertical-align: top; }}
        .meta-col {{ width: 180px; text-align: right; vertical-align: top; }}
    </style>
</head>
<body>
    <h2>Commit Logs</h2>
    <table>
{rows}
    </table>
</body>
</html>"""

_ROW_TEMPLATE = """        <tr class="commit-row">
            <td class="hash-col"><span class="hash">{hash}</span></td>
            <td class="msg-col"><div class="marker"></div><span class="message">{message}</span></td>
            <td class="meta-col"><div class="author">{author}</div><div class="date">{date}</div></td>
        </tr>"""


def render_dashboard_html() -> str:
    cards = "\n".join(
        _CARD_TEMPLATE.format(command=command, icon=icon, title=title, description=description)
        for command, (icon, title, description) in DASHBOARD_ACTIONS.items()
    )
    return _DASHBOARD_TEMPLATE.format(cards=cards)


def render_graph_html(entries: Iterable[CommitLogEntry]) -> str:
    """Commit table; every value taken from git is HTML-escaped."""
    rows = "\n".join(
        _ROW_TEMPLATE.format(
            hash=escape(entry.short_hash),
            message=escape(entry.message),
            author=escape(entry.author_name),
            date=escape(entry.date.strftime("%Y-%m-%d %H:%M"))
        )
        for entry in entries
    )
    return _GRAPH_TEMPLATE.format(rows=rows)
