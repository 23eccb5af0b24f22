# src/mgmt_shell/core/utils/helptext.py
from mgmt_shell.core.command_registry import COMMAND_HELP_TEXTS

# The static header part of the help text
HEADER_HELP_TEXT = """
Management Shell - Help

An interactive shell that parses management operation requests.

---
OPERATION REQUESTS
---
  [/]type=name/...:operation(name=value,...){header;...} [> file]

  /subsystem=logging:read-resource(recursive=true)
  :read-attribute(name=release-version)
  ./logger=app:write-attribute(name=level,value=DEBUG)
  ..:read-children-names(child-type=logger)
  :deploy(content=[{bytes=bytes{0x01,0x02}}]){rollout id=plan1;allow-resource-service-restart}

  The address is relative to the current node (see 'cd'); '/' starts at the
  root, '..' goes up, '.type' keeps only the type of the last node.
  A property without '=' is true, '!name' is false.

---
VALUES
---
  text, "quoted text"         string
  [a,b]                       list
  [a=1,b=2]                   property list
  {a=1,b=[x,y]}  a=1,b=2      object
  bytes{1,-2,0x7f}            bytes
  \\n \\t \\" \\\\ \\, \\=            escapes

---
SEPARATORS & SUBSTITUTION
---
  A , B  or  A ; B            Run B after A when A succeeds.
  $name                       Shell variable (see 'set').
  ${name}  ${name:default}    Expression property or environment value.
  $$                          A literal '$'.

---
COMMANDS
---
  help                Show this help text.
""".strip()


def get_help_text() -> str:
    """
    Dynamically assembles the full help text from the header and all
    discovered help text fragments from the command handlers.
    """
    full_help_parts = [HEADER_HELP_TEXT]

    # Sort the command help texts alphabetically for a consistent order
    for command_name in sorted(COMMAND_HELP_TEXTS.keys()):
        full_help_parts.append(COMMAND_HELP_TEXTS[command_name])

    return "\n".join(full_help_parts)
