"""HTML shells that render the catalog, menu and cart through the JSON API."""

from __future__ import annotations

import html
import json
from typing import TYPE_CHECKING

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from protein_finder.services.ranking import ViewOption

if TYPE_CHECKING:
    from protein_finder.containers import AppContainer

router = APIRouter(tags=["pages"])


@router.get("/", response_class=HTMLResponse)
async def home_page() -> HTMLResponse:
    """Restaurant search with recent and alphabetical listings."""
    return HTMLResponse(_render("Protein Finder", _HOME_BODY, {}))


@router.get("/restaurant/{restaurant_id}", response_class=HTMLResponse)
async def restaurant_page(
    restaurant_id: str, request: Request, view: ViewOption = ViewOption.MENU
) -> HTMLResponse:
    """Menu or macro ranking view of a restaurant."""
    container: AppContainer = request.app.state.container
    restaurant = container.catalog_service.get_restaurant(restaurant_id)
    if restaurant is None or container.catalog_service.get_menu(restaurant_id) is None:
        return HTMLResponse(
            _render("Restaurant not found", _NOT_FOUND_BODY, {}), status_code=404
        )
    return HTMLResponse(
        _render(
            restaurant.name,
            _RESTAURANT_BODY,
            {"restaurantId": restaurant.id, "view": view.value},
        )
    )


@router.get("/restaurants/{restaurant_id}")
async def legacy_restaurant_page(restaurant_id: str) -> RedirectResponse:
    """Older plural path."""
    return RedirectResponse(url=f"/restaurant/{restaurant_id}", status_code=307)


@router.get("/cart", response_class=HTMLResponse)
async def cart_page() -> HTMLResponse:
    """Cart with quantity controls and totals."""
    return HTMLResponse(_render("Your cart", _CART_BODY, {}))


@router.get("/cart/snapshot", response_class=HTMLResponse)
async def snapshot_page() -> HTMLResponse:
    """Printable meal summary."""
    return HTMLResponse(_render("Meal Snapshot", _SNAPSHOT_BODY, {}))


def _render(title: str, body: str, page_data: dict[str, str]) -> str:
    # "</" is escaped so the data cannot close the script element.
    data = json.dumps(page_data).replace("</", "<\\/")
    return (
        _LAYOUT_HTML.replace("__TITLE__", html.escape(title))
        .replace("__PAGE_DATA__", data)
        .replace("__BODY__", body)
    )


_LAYOUT_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>__TITLE__</title>
    <style>
      body { font-family: ui-sans-serif, system-ui, sans-serif; margin: 2rem; }
      h1 { margin-bottom: 0.5rem; }
      nav a { margin-right: 1rem; }
      .row { margin-bottom: 1rem; }
      .muted { color: #666; }
      .card { border: 1px solid #ddd; border-radius: 6px; padding: 0.75rem; }
      .cards { display: grid; gap: 0.75rem;
               grid-template-columns: repeat(auto-fill, minmax(16rem, 1fr)); }
      pre { background: #f5f5f5; padding: 1rem; overflow: auto; }
    </style>
  </head>
  <body>
    <nav><a href="/">Restaurants</a><a href="/cart">Cart</a></nav>
    <h1>__TITLE__</h1>
    <script>window.PAGE = __PAGE_DATA__;</script>
    __BODY__
  </body>
</html>
"""

_HOME_BODY = """<div class="row">
      <input id="query" placeholder="Search restaurants" autocomplete="off" />
    </div>
    <div id="suggestions" class="row"></div>
    <div id="groups"></div>
    <script>
      const link = (r) => `<a href="/restaurant/${r.id}">${r.name}</a>`;
      async function suggest() {
        const q = encodeURIComponent(document.getElementById("query").value);
        const res = await fetch(`/api/restaurants/suggest?q=${q}`);
        const data = await res.json();
        const recent = data.recent.map((r) =>
          `${link(r)} <button data-id="${r.id}" class="forget">x</button>`);
        document.getElementById("suggestions").innerHTML =
          (recent.length ? `<p class="muted">Recent</p>${recent.join(" ")}` : "") +
          `<ul>${data.suggestions.map((r) => `<li>${link(r)}</li>`).join("")}</ul>`;
        document.querySelectorAll(".forget").forEach((button) => {
          button.onclick = async () => {
            await fetch(`/api/recent/${button.dataset.id}`, { method: "DELETE" });
            suggest();
          };
        });
      }
      async function groups() {
        const res = await fetch("/api/restaurants");
        const data = await res.json();
        document.getElementById("groups").innerHTML = data.groups.map((g) =>
          `<h2>${g.letter}</h2>${g.restaurants.map(link).join("<br />")}`).join("");
      }
      document.getElementById("query").addEventListener("input", suggest);
      suggest();
      groups();
    </script>"""

_RESTAURANT_BODY = """<div class="row">
      <a href="?view=menu">Menu</a> | <a href="?view=top">Top picks</a>
    </div>
    <div class="row">
      <label>Sort
        <select id="sort">
          <option value="highest-protein">Highest protein</option>
          <option value="best-ratio">Best ratio</option>
          <option value="lowest-calories">Lowest calories</option>
        </select>
      </label>
      <label>Min protein <input id="protein_min" type="number" min="0" /></label>
      <label>Max calories <input id="calories_max" type="number" min="0" /></label>
      <label>Search <input id="q" /></label>
      <label><input id="include_sides_drinks" type="checkbox" /> Sides &amp; drinks</label>
      <label><input id="include_large_shareables" type="checkbox" /> Shareables</label>
    </div>
    <div id="featured" class="cards row"></div>
    <div id="content"></div>
    <script>
      const base = `/api/restaurants/${window.PAGE.restaurantId}`;
      const card = (item) => `<div class="card">
        <strong>${item.name}</strong>${item.variant_label ? ` (${item.variant_label})` : ""}
        <div class="muted">${item.nutrition.calories} cal, ${item.nutrition.protein}g protein
          ${item.ratio ? `, ${item.ratio}` : ""}</div>
        <button data-item="${item.id}" data-variant="${item.variant_id || ""}"
          class="add">Add</button></div>`;
      function params() {
        const search = new URLSearchParams({ view: window.PAGE.view });
        for (const id of ["sort", "protein_min", "calories_max", "q"]) {
          const value = document.getElementById(id).value;
          if (value) search.set(id, value);
        }
        for (const id of ["include_sides_drinks", "include_large_shareables"]) {
          if (document.getElementById(id).checked) search.set(id, "true");
        }
        return search;
      }
      async function load() {
        const res = await fetch(`${base}/menu?${params()}`);
        const data = await res.json();
        const content = document.getElementById("content");
        if (data.empty) {
          content.innerHTML = `<p class="muted">${data.message}</p>`;
        } else if (data.view === "top") {
          content.innerHTML = Object.entries(data.top_picks).map(([key, rows]) =>
            `<h2>${key}</h2><div class="cards">${rows.map(card).join("")}</div>`).join("");
        } else {
          content.innerHTML = data.sections.map((section) =>
            `<h2 id="${section.anchor}">${section.heading}</h2>
             <div class="cards">${section.items.map(card).join("")}</div>`).join("");
        }
        document.querySelectorAll(".add").forEach((button) => {
          button.onclick = () => addToCart(button.dataset.item, button.dataset.variant);
        });
      }
      async function addToCart(itemId, variantId) {
        await fetch("/api/cart/items", {
          method: "POST",
          headers: { "Content-Type": "application/json" },
          body: JSON.stringify({
            restaurant_id: window.PAGE.restaurantId,
            item_id: itemId,
            variant_id: variantId || null,
          }),
        });
      }
      async function featured() {
        const res = await fetch(base);
        const data = await res.json();
        document.getElementById("featured").innerHTML = data.featured.map((pick) =>
          `<div><p class="muted">${pick.label}</p>${card(pick.item)}</div>`).join("");
      }
      document.querySelectorAll("select, input").forEach((el) =>
        el.addEventListener("change", load));
      featured();
      load();
    </script>"""

_CART_BODY = """<div id="cart"></div>
    <div class="row">
      <a href="/cart/snapshot">Meal snapshot</a>
      <button id="clear">Clear cart</button>
    </div>
    <script>
      async function call(method, url, body) {
        const res = await fetch(url, {
          method,
          headers: { "Content-Type": "application/json" },
          body: body ? JSON.stringify(body) : undefined,
        });
        render(await res.json());
      }
      function render(cart) {
        const lines = cart.items.map((line) => `<div class="card row">
          <strong>${line.name}</strong> x${line.quantity}
          <div class="muted">${line.line_macros.calories} cal,
            ${line.line_macros.protein}g protein</div>
          <button data-id="${line.id}" data-q="${line.quantity - 1}" class="qty">-</button>
          <button data-id="${line.id}" data-q="${line.quantity + 1}" class="qty">+</button>
          <button data-id="${line.id}" class="remove">Remove</button></div>`);
        document.getElementById("cart").innerHTML = lines.length
          ? lines.join("") + `<p>${cart.totals.calories} cal, ${cart.totals.protein}g protein,
              ${cart.totals.carbs}g carbs, ${cart.totals.fat}g fat</p>`
          : `<p class="muted">Your cart is empty.</p>`;
        document.querySelectorAll(".qty").forEach((button) => {
          button.onclick = () => call("PATCH", `/api/cart/items/${button.dataset.id}`,
            { quantity: Number(button.dataset.q) });
        });
        document.querySelectorAll(".remove").forEach((button) => {
          button.onclick = () => call("DELETE", `/api/cart/items/${button.dataset.id}`);
        });
      }
      document.getElementById("clear").onclick = () => call("DELETE", "/api/cart");
      call("GET", "/api/cart");
    </script>"""

_SNAPSHOT_BODY = """<h2 id="title"></h2>
    <div id="lines"></div>
    <pre id="totals"></pre>
    <script>
      async function load() {
        const res = await fetch("/api/cart/snapshot");
        const data = await res.json();
        document.getElementById("title").textContent = data.title;
        document.getElementById("lines").innerHTML = data.lines.map((line) =>
          `<div class="row"><strong>${line.quantity} x ${line.name}</strong>
           <div class="muted">${line.summary}</div></div>`).join("");
        document.getElementById("totals").textContent =
          JSON.stringify(data.totals, null, 2);
      }
      load();
    </script>"""

_NOT_FOUND_BODY = """<p>We could not find that restaurant.</p>
    <p><a href="/">Back to all restaurants</a></p>"""
