from __future__ import annotations

from html import escape


def render_homepage(*, app_name: str, api_version: str, store_backend: str) -> str:
    return f"""
<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>GigConnect Server - Online</title>
  <style>
    :root {{
      --ink: #ffffff;
      --online: #4caf50;
    }}
    * {{ box-sizing: border-box; }}
    body {{
      margin: 0;
      min-height: 100vh;
      display: flex;
      flex-direction: column;
      justify-content: center;
      align-items: center;
      font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, Helvetica, Arial,
        sans-serif;
      color: var(--ink);
      text-align: center;
      background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
      overflow: hidden;
    }}
    h1 {{
      font-size: 4.5rem;
      margin-bottom: 0.5em;
      font-weight: 300;
      letter-spacing: 1px;
      text-shadow: 2px 2px 4px rgba(0, 0, 0, 0.2);
    }}
    p {{
      font-size: 1.4rem;
      margin-bottom: 1em;
      font-weight: 300;
    }}
    .status-dot {{
      height: 15px;
      width: 15px;
      margin-right: 10px;
      display: inline-block;
      border-radius: 50%;
      background-color: var(--online);
      box-shadow: 0 0 20px var(--online), 0 0 40px var(--online);
    }}
    code {{
      font-size: 1rem;
      opacity: 0.85;
    }}
  </style>
</head>
<body>
  <main class="container">
    <h1>GigConnect Server</h1>
    <p><span class="status-dot"></span>Online &amp; connected to the {escape(store_backend)} store.</p>
    <p><small>API Version: {escape(api_version)}</small></p>
    <p><code>{escape(app_name)}</code> &middot; <a href="/docs" style="color: inherit">/docs</a></p>
  </main>
</body>
</html>
"""
