# esprovision

Create, read, update and delete Elasticsearch-side resources from Python:
Kibana saved objects, OpenDistro alerting monitors, ISM policies, and
OpenDistro security role mappings and Kibana tenants.

Each resource kind is a module with `create_*`, `read_*`, `update_*` and
`delete_*` functions. They work on a `ResourceData` holding the desired
attributes (`get` / `set`) and the resource's `id`, and talk to the cluster
through an `ApiClient`. A read refreshes the attributes from the cluster; when
the resource no longer exists the id is set to `""` instead of raising.

## Installation

```
pip install esprovision
```

## Example

```python
import requests

from esprovision.transport import ApiClient
from esprovision.resource import ResourceData
from esprovision.tenant import create_tenant, delete_tenant

client = ApiClient("http://localhost:9200", 7, requests.Session())

tenant = ResourceData({"tenant_name": "analytics", "description": "Analytics team"}, "")
create_tenant(tenant, client)
print(tenant.id, tenant.get("index"))

delete_tenant(tenant, client)
```

## Modules

- `esprovision.transport`: `ApiClient` with `perform_request` (JSON in, decoded
  JSON out, optional retry with exponential backoff on chosen status codes),
  `index_exists`, `create_index`, `get_document`, `index_document` and
  `delete_document`; `expand_path` fills `{name}` placeholders in a URL path,
  percent-encoding each value. The client's `major_version` (default 7) decides
  which APIs are available and whether document paths use `_doc` or the
  document's type.
- `esprovision.resource`: `ResourceData` and `normalize_json`, which turns a
  JSON string into compact form with sorted keys.
- `esprovision.monitor`: alerting monitors from a JSON `body`; needs version 6
  or later. After creation the monitor is read back, since the server fills in
  defaults.
- `esprovision.ism_policy`: ISM policies (`policy_id`, `body`), with
  `primary_term` and `seq_no` read back and sent as `if_primary_term` /
  `if_seq_no` on update; needs version 6 or later.
- `esprovision.roles_mapping`: map `backend_roles`, `hosts`, `users` and
  `and_backend_roles` to a `role_name`; needs version 7.
- `esprovision.tenant`: Kibana tenants (`tenant_name`, `description`); the
  read also sets `index` from `compute_tenant_index`; needs version 7.
- `esprovision.kibana_object`: Kibana saved objects stored as documents in an
  index (default `.kibana`, created with empty mappings if missing). The `body`
  is a JSON array of objects, each with `_id` and `_source`; `validate_body`
  checks this. Only the first object is stored.

Security API changes are retried on HTTP 409 and 500; ISM policy changes on
version 7 are retried on 409.

Problems reported by the cluster raise `ApiError`; a missing resource raises
`NotFoundError`, a subclass of it. Deleting a Kibana object that does not
exist raises `NotFoundError`.

## What it does not do

The package does not manage alerting destinations, does not attach ISM
policies to indices, and does not create the security roles themselves (only
their mappings and tenants). It has no command-line tool; it is used as a
library.

## Tests

```
pip install -e ".[test]"
pytest
```