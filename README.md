# mechalligator

Collects product listings from online keyboard stores. Scraping is done by
background jobs kept in a database-backed queue: an HTTP API accepts requests
to scrape one site configuration or every active one, a `JobScheduler` takes
due jobs off the queue in worker threads and runs the handler for each job
type, and `ScrapeJobHandler` runs the matching scraper plugin, saves the
products and their images, and queues a follow-up `tag_product` job for each
saved product.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Storage

Jobs, products and images are kept in an SQLite database file.
`mechalligator.database.connect(config)` opens the file named by the
configuration's `name` and checks that it answers. The package does not create
the schema: the tables `jobs`, `products`, `product_images`,
`site_configurations` and `vendors` must already exist in that file.

## Configuration

`mechalligator.config.load_database_config()` reads these variables:

| Variable                | Default      |
|-------------------------|--------------|
| `DB_HOST`               | `localhost`  |
| `DB_PORT`               | `5432`       |
| `DB_USER`               | `postgres`   |
| `DB_PASSWORD`           | empty        |
| `DB_NAME`               | `aggregator` |
| `DB_SSL_MODE`           | `disable`    |
| `DB_MAX_OPEN_CONNS`     | `25`         |
| `DB_MAX_IDLE_CONNS`     | `5`          |
| `DB_CONN_MAX_LIFETIME`  | `5m`         |
| `DB_CONN_MAX_IDLE_TIME` | `1m`         |

Only `DB_NAME` decides which database file is opened; the other values are
checked by `DatabaseConfig.validate()` and rendered by `DatabaseConfig.dsn()`
but not used for the connection. Durations use the `1h30m`, `90s`, `250ms`
form (see `parse_duration`). Values that cannot be parsed fall back to the
default. `validate()` raises `ConfigError` unless the host, user and name are
set, the port is between 1 and 65535, and the idle connection limit is
positive and no larger than the open connection limit.

The API server listens on the port given by `BACKEND_PORT` (default `8080`).

## Commands

Start the API server:

```
mechalligator-api
```

It validates the configuration, opens the database and serves until it
receives SIGINT or SIGTERM, then shuts down. Each request is logged with its
method, path and duration.

```
mechalligator-hello
```

starts a minimal server on port 8080 that greets every path and answers `OK`
on `/health`; it is handy for checking a deployment.

## HTTP API

| Method   | Path                    | Purpose                                             |
|----------|-------------------------|-----------------------------------------------------|
| `GET`    | `/health`               | Returns `OK`                                        |
| `GET`    | `/api/jobs`             | List jobs; `?status=` (default `pending`), `?limit=` (default 50) |
| `POST`   | `/api/jobs/scrape`      | Queue a scrape of one site configuration            |
| `POST`   | `/api/jobs/scrape-all`  | Queue a scrape of every active site configuration   |
| `GET`    | `/api/jobs/?id=<id>`    | Fetch one job                                       |
| `DELETE` | `/api/jobs/?id=<id>`    | Cancel a pending job                                |

Queue a scrape:

```
POST /api/jobs/scrape
{"config_id": "cfg-1", "options": {"collection_handle": "keycaps"}}
```

The response is the created job with status `201`. Listing returns
`{"jobs": [...], "count": n}`, with `"jobs": null` when nothing matches; an
unknown status matches nothing. Other methods on these paths get `405`, other
paths `404`. Errors are returned as plain text.

Jobs have the statuses `pending`, `running`, `completed`, `failed` and
`cancelled`. Only pending jobs can be cancelled. "Scrape all" queues one job
per active site and records a parent `scrape_all_sites` job that is already
completed.

## Running jobs from Python

There is no worker command. To process queued jobs, start a `JobScheduler`
yourself:

```python
from mechalligator.config import load_database_config
from mechalligator.database import connect
from mechalligator.database_queue import DatabaseQueue
from mechalligator.job_repository import JobRepository
from mechalligator.manager import Manager
from mechalligator.scheduler import JobScheduler
from mechalligator.scrape_handler import ScrapeJobHandler
from mechalligator.shopify import ShopifyPlugin

db = connect(load_database_config())
queue = DatabaseQueue(JobRepository(db))
manager = Manager()
manager.register_plugin(ShopifyPlugin())

scheduler = JobScheduler(queue, workers=3)
scheduler.register_handler(ScrapeJobHandler(db, manager, queue))
with scheduler:
    ...  # worker threads poll the queue every 5 seconds until the block ends
```

A job whose handler raises is retried after attempts² minutes until it
reaches its maximum number of attempts (3 by default), then marked `failed`.
`cleanup_old_jobs()` only logs the seven-day cut-off; it deletes nothing.

## Scraping from Python

The Shopify plugin reads a store's public `products.json` listing and needs no
credentials:

```python
from mechalligator.scraper_types import ScrapeRequest
from mechalligator.shopify import ShopifyPlugin

plugin = ShopifyPlugin()
request = ScrapeRequest(
    site_url="https://shop.example.com",
    config_id="example-config",
    options={"collection_handle": "keycaps"},
)
plugin.validate(request)
result = plugin.scrape_all_pages(request)
for product in result.products:
    print(product.id, product.name, product.price, product.currency, product.url)
```

Supported options: `limit` (1–250, default 250), `collection_handle`, `page`,
`include_images` and `include_variants` (both on unless set to `false`).
A product with several variants becomes one entry per variant. Prices are
given in `INR`.

A `Manager` picks the plugin by site type and fills in the result metadata:

```python
from mechalligator.manager import Manager

manager = Manager()
manager.register_plugin(ShopifyPlugin())
request.site_type = "SHOPIFY"
result = manager.scrape_by_type(request)
```

## What this package does not do

- It has no worker command; jobs are processed only by a `JobScheduler` you
  start from Python, as shown above.
- It has no handler for `tag_product` jobs. Scraping queues one per saved
  product, but a scheduler without such a handler marks them failed, and no
  product tags are ever written.
- It does not create or migrate the database schema.