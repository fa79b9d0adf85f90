# givilsta

A different whitelisting mechanism for blocklist maintainers.

`givilsta` reads a blocklist (a hosts file or a plain list of domains and
URLs), applies your whitelist rules to it and writes out only the lines that
are still blacklisted. Blank lines are dropped.

## Installation

```
pip install givilsta
```

No third-party libraries are needed.

## Command line

```
givilsta --source blocklist.list --whitelist my.whitelist --output clean.list
```

Options:

- `-s`, `--source` — the file to clean up (required).
- `-w`, `--whitelist` — a whitelist file or URL; may be repeated, and a
  comma-separated list is also accepted.
- `-a`, `--whitelist-all` — as `--whitelist`, but every entry is read as an
  `ALL` rule.
- `-r`, `--whitelist-regex` — every entry is read as a `REG` rule.
- `-z`, `--whitelist-rzdb` — every entry is read as an `RZDB` rule.
- `-o`, `--output` — where to write the result; standard output if omitted.
- `-c`, `--handle-complement` — also whitelist the `www.` complement of a
  rule (and the other way round).
- `-l`, `--log-level` — one of `debug`, `info`, `warn`, `error`
  (default `error`). Log records are written to standard error as JSON
  lines; an unknown level gives a warning and falls back to `error`.

At least one whitelist must be given. Whitelists may be local paths or
URLs with a scheme and a host; URLs are downloaded into a temporary
directory first. A missing whitelist file, a failed download or a failed
write ends the run with exit status 1.

Print the version with:

```
givilsta version
```

## Rule syntax

- A plain entry (`example.com`, `https://example.com/path`) matches exactly.
  Subjects are compared with a leading `www.` removed.
- `ALL .example.org` matches any subject ending with `.example.org`, and
  `example.org` itself; `ALL foo` matches anything ending in `.foo`.
- `REG <pattern>` matches subjects against a regular expression.
- `RZDB name` matches `name.<extension>` for every known top-level domain
  and public suffix.

Flags (`ALL`, `REG`, `RZD`/`RZDB`) may be followed by a space, `:`, `#`,
`,` or `@`, and are case-insensitive. Lines starting with `#` are comments.
Internationalised names are converted to their IDNA ASCII form before they
are indexed or checked.

`RZDB` rules need the list of known extensions. Unless it is given through
the `extensions` argument, it is downloaded on first use from the IANA root
zone and public suffix databases (`givilsta.data.fetch_iana_extensions` and
`givilsta.data.fetch_psl_extensions`), so those rules need network access.

## Library use

```python
from givilsta.ruler import Flag, GivilstaRuler

ruler = GivilstaRuler(handle_complement=True)
ruler.add_rule("foo.example.com")
ruler.add_rule_with_flag(".org", Flag.ALL)

ruler.is_subject_whitelisted("www.foo.example.com")   # True
ruler.is_subject_blacklisted("bar.example.com")       # True
ruler.get_blacklisted_from_line("0.0.0.0 bar.example.org bad.example.net")
# ['0.0.0.0', 'bad.example.net']
```

`GivilstaRuler(handle_complement=False, logger=None, extensions=None)` also
offers `remove_rule`, `remove_rule_with_flag` and `get_whitelisted_from_line`.
`Flag` has the members `ALL`, `REG` and `RZDB`.

Lower-level pieces:

- `givilsta.checker.InternalRuler` — the rule index itself.
- `givilsta.transformer` — `normalize_rule`, `normalize_subject`,
  `normalize_url`, `idnaze`, `idnaze_string` and
  `extract_net_location_from_url`.
- `givilsta.helpers` — `iter_file`, `write_file_from_iter`, `copy_file`,
  `fetch_url`, `fetch_url_to_file`, `is_url` and `join_with_pipe`.
- `givilsta.data` — `IANAExtensions`, `PSLExtensions` and the functions
  that build them from a mapping or download them.