"""Single-page search UI.

Each search is appended to an on-page conversation history (query,
timestamp, and the records or the error), newest last.
"""

from starlette.requests import Request
from starlette.responses import HTMLResponse
from starlette.routing import Route

INDEX_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Tweet Search</title>
<style>
  body { font-family: system-ui, sans-serif; max-width: 800px; margin: 2rem auto; padding: 0 1rem; }
  form { display: flex; gap: .5rem; margin-bottom: 1rem; }
  input { flex: 1; padding: .5rem; }
  .exchange { border: 1px solid #ddd; border-radius: 5px; padding: .75rem; margin-bottom: 1rem; }
  .query { font-weight: 600; }
  .tweet { border-top: 1px solid #eee; padding: .5rem 0; }
  .meta { color: #666; font-size: .85rem; }
  .error { color: #b00; }
</style>
</head>
<body>
<h1>Tweet Search</h1>
<p class="meta">Search tweets through the Apify MCP server in plain language.</p>
<div id="history"></div>
<form id="search">
  <input id="message" placeholder="artificial intelligence, from:nasa, @nasa since:2024-01-01" autofocus>
  <button id="send" type="submit">Search</button>
  <button id="clear" type="button">Clear</button>
</form>
<script>
const form = document.getElementById("search");
const input = document.getElementById("message");
const send = document.getElementById("send");
const conversation = document.getElementById("history");

function el(tag, className, text) {
  const node = document.createElement(tag);
  if (className) node.className = className;
  if (text !== undefined) node.textContent = text;
  return node;
}

function renderTweet(tweet) {
  const div = el("div", "tweet");
  if (typeof tweet !== "object" || tweet === null) {
    div.textContent = String(tweet);
    return div;
  }
  const user = (tweet.user && tweet.user.username) || tweet.username || "unknown";
  div.append(
    el("div", "meta", "@" + user + " - " + (tweet.created_at || tweet.createdAt || "")),
    el("div", "", tweet.text || JSON.stringify(tweet, null, 2)),
  );
  return div;
}

function addExchange(query) {
  const exchange = el("div", "exchange");
  exchange.append(
    el("div", "query", query),
    el("div", "meta", new Date().toLocaleTimeString()),
  );
  const body = el("div", "meta", "Searching...");
  exchange.append(body);
  conversation.append(exchange);
  exchange.scrollIntoView({behavior: "smooth"});
  return body;
}

function showError(body, message) {
  body.className = "error";
  body.textContent = message;
}

form.addEventListener("submit", async (event) => {
  event.preventDefault();
  const message = input.value.trim();
  if (!message) return;
  input.value = "";
  send.disabled = true;
  const body = addExchange(message);
  try {
    const res = await fetch("/api/dialog", {
      method: "POST",
      headers: {"Content-Type": "application/json"},
      body: JSON.stringify({message}),
    });
    const data = await res.json();
    if (!res.ok) {
      showError(body, data.error || res.statusText);
      return;
    }
    const meta = data.metadata || {};
    body.textContent = (meta.total || 0) + " results (" + (meta.realTweets || 0) + " real, " + (meta.mockTweets || 0) + " mock)";
    (data.response || []).forEach((tweet) => body.parentNode.append(renderTweet(tweet)));
  } catch (err) {
    showError(body, "Network error occurred");
  } finally {
    send.disabled = false;
  }
});

document.getElementById("clear").addEventListener("click", () => conversation.replaceChildren());
</script>
</body>
</html>
"""


async def index(request: Request) -> HTMLResponse:
    return HTMLResponse(INDEX_HTML)


ui_routes = [
    Route("/", index, methods=["GET"]),
]
