"""
Agent instruction document served at GET /mcp.

The text depends only on the origin it is rendered for, so an agent can
fetch it once and cache it.
"""

from __future__ import annotations

from string import Template

_INSTRUCTIONS = Template(
    """# VibeFlare CMS Instructions

You are operating a content-management system built for agents.
Every endpoint below lives under $origin.

## Pages (key-value storage)
- Pages are stored under the key `page:{slug}`. The root path `/` is the slug `home`.
- Create or replace a page: POST $api/page/{slug}
  - Body: `{"content": "<h1>Your HTML content</h1>"}`
  - Response: `{"success": true, "slug": "{slug}"}`
  - Example: POST $api/page/about with `{"content": "<h1>About</h1><p>Who we are.</p>"}`
- View a page: GET $origin/{slug}
- List stored pages: GET $origin/mcp/pages
  - Response: `{"success": true, "pages": ["home", "about"]}`

## Structured data (SQL database)
- Starter tables (when initialised): posts, settings, users, comments
- Execute one SQL statement: POST $api/sql
  - Body: `{"sql": "SELECT * FROM posts WHERE published = 1"}`
  - Response: `{"success": true, "results": [...], "meta": {...}}`
  - Example: POST $api/sql with `{"sql": "INSERT INTO posts (title, slug, content) VALUES ('My Post', 'my-post', 'Content here')"}`

## Assets (blob storage)
- Upload a file: POST $api/upload/{key}
  - Body: raw file bytes
  - Header: `Content-Type` set to the file's MIME type (defaults to application/octet-stream)
  - Response: `{"success": true, "key": "{key}"}`
  - Example: POST $api/upload/images/hero.jpg with JPEG bytes and `Content-Type: image/jpeg`
- Download a file: GET $origin/assets/{key}

## Inline editing
- Add `?edit` to any page URL to make its body editable in the browser.
- Example: $origin/about?edit
- Edits are saved with the Save button and auto-saved periodically.

## Site styling
- The page with slug `styles` holds CSS appended after the base theme on every page.
- Example: POST $api/page/styles with `{"content": ":root { --color-primary: #ff6b6b; }"}`

## Common tasks

### Create the homepage
```
POST $api/page/home
Content-Type: application/json

{"content": "<h1>Welcome to My Site</h1><p>This is the homepage.</p>"}
```

### Add a blog post
```
POST $api/sql
Content-Type: application/json

{"sql": "INSERT INTO posts (title, slug, content, published) VALUES ('First Post', 'first-post', 'Hello', 1)"}
```

### Upload a stylesheet
```
POST $api/upload/site.css
Content-Type: text/css

body { font-family: sans-serif; }
```

## Errors
- Every API operation above answers JSON with a `success` boolean.
- Failures carry an `error` string; SQL failures also echo the `sql` that failed.
- Malformed bodies answer 400 and storage failures 500.
- Unknown API paths answer 404 with the plain-text body `API endpoint not found`.

## Security notes
- There is no authentication. Anyone who can reach $origin can change content.
- Stored HTML and SQL are used as given.
"""
)


def generate_instructions(origin: str, api_prefix: str = "/api") -> str:
    """Render the instruction document for the given origin and API prefix."""
    origin = origin.rstrip("/")
    prefix = api_prefix.strip("/")
    api = f"{origin}/{prefix}" if prefix else origin
    return _INSTRUCTIONS.substitute(origin=origin, api=api)
