# ropreset

`ropreset` is the service layer for a site where Ragnarok Online players share
equipment presets. Players save presets, publish them, tag them and like each
other's tags. Aggregate statistics show which items, cards and enchants each
class uses for each attack skill.

The services are not tied to any particular storage. Each one takes repository
objects and calls their methods, which are listed in each module's docstring.
Presets, tags, stores and inputs may be mappings or objects with attributes.
`ropreset.database` creates the MongoDB collections and indexes that such
repositories would use.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `ropreset.accumulate` builds per-user, per-class, per-skill usage tables from
  presets. It provides `accumulate_presets`, `new_position_map`,
  `build_enchant_str` and `get_skill_name`, and records each item's usage in an
  `ItemSummary`. `build_enchant_str(3, 1, 2)` gives `"1-2-3"`.
  `get_skill_name` strips `[Improved ...]` prefixes and anything after `==`,
  and maps skill variants to their base skill.
- `ropreset.summary` provides `PresetSummaryService(preset_repo, output_dir=".")`.
  Its `generate_summary()` reads every preset in pages of 1000 and ranks the
  items in each equipment position by usage rate, keeping the top ten as
  `RankingSummary` entries. It returns a `PresetSummary` and writes the
  intermediate tables as `x_presetSummaryMap.json`,
  `x_summaryClassSkillMap.json`, `x_totalSelectedJobMap.json` and `x.json` into
  the output directory through `write_json_file`. If there are no presets it
  returns an empty `PresetSummary`.
- `ropreset.presets` provides `RoPresetService`, which creates, updates,
  publishes, unpublishes and deletes presets, and `validate_preset_owner`.
  Publishing gives a preset the tag `no_tag`. Refusals are raised as
  `PresetServiceError` subclasses: `NotMyPresetError`,
  `CannotUpdatePublishedPresetError` and `CannotTagUnpublishedError`.
- `ropreset.tags` provides `PresetTagService`. It tags published presets, adds
  and removes tags in bulk, records likes and unlikes, and searches presets by
  tag, returning a `PartialSearchTagsResult` of `PresetTagView` items.
  `attach_tags` pairs presets with their tags as `PresetWithTags`.
- `ropreset.accounts` provides `UserService`, which registers users with the
  role `ROLE_USER` and raises `EmailAlreadyRegisteredError` for an e-mail
  address that is already in use. It also provides `AuthenticationDataService`
  for storing and looking up one-time login codes.
- `ropreset.market` provides `ProductService` and `StoreService` for player
  shops. Product searches return only published, unexpired products, at most
  `MAX_SEARCH_LIMIT` (20) at a time, sorted by expiry date, then `m`, then
  `baht`. Listings expire after two days, or seven for `ROLE_ADMIN` (see
  `next_exp_date`). Store operations for a user without a store raise
  `StoreNotFoundError`.
- `ropreset.movies` provides `MovieTranslatorService`, which reads episode
  subtitle translations and patches sentences in them.
- `ropreset.guard` checks JWT bearer tokens. `authenticate(header, secret)`
  verifies an HMAC-signed token and returns a `UserIdentity`, taking the user
  id from the `jti` claim and the role from `sub`. It raises `Forbidden`
  otherwise. `user_guard(app, secret)` wraps a WSGI application. It answers
  403 to requests without a valid token, and for the others puts the user id
  in `HTTP_USERID` and the role in `HTTP_ROLE` of the environment.
  `AccessTokenRequest` and `AccessTokenResponse` are plain data classes.
- `ropreset.database`: `connect_mongodb(connection_str, db_name)` connects to
  MongoDB and `create_indexes(database)` ensures the indexes exist. Both
  return a `Collections` bundle. Its `ro_presets_for_summary` member refers to
  the `authorization_codes` collection.

## Example

```python
from ropreset.database import connect_mongodb
from ropreset.guard import Forbidden, authenticate

collections = connect_mongodb("mongodb://localhost:27017", "ro")

try:
    identity = authenticate("Bearer token", "secret")
    print(identity.user_id, identity.role)
except Forbidden as exc:
    print("rejected:", exc)
```

## What it does not do

- It has no repository implementations. You supply objects with the methods
  the services call.
- It has no HTTP server or routes. `user_guard` is only a WSGI wrapper.
- It does not issue or refresh tokens. It only verifies them.
- It has no command-line program.