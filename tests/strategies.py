"""Hypothesis strategies for toolloop types.

Provides strategies for tool names, tool-call ids, argument payloads and
provider responses that request tool calls.
"""

import json

from hypothesis import strategies as st

tool_names = st.from_regex(r"[a-zA-Z0-9_-]{1,64}", fullmatch=True)

# Provider ids are opaque; anything non-empty must survive untouched
call_ids = st.text(min_size=1, max_size=40)

json_scalars = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(min_value=-(2**31), max_value=2**31),
    st.text(max_size=50),
)

argument_objects = st.dictionaries(
    keys=st.text(min_size=1, max_size=20),
    values=json_scalars,
    max_size=6,
)

# Raw argument text: mostly valid JSON objects, sometimes garbage
raw_arguments = st.one_of(
    argument_objects.map(json.dumps),
    st.text(max_size=30),
)


@st.composite
def tool_call_batches(draw, names=None, min_size=1, max_size=6):
    """List of (name, raw_arguments, call_id) with unique ids."""
    ids = draw(st.lists(call_ids, min_size=min_size, max_size=max_size, unique=True))
    name_strategy = st.sampled_from(names) if names else tool_names
    return [(draw(name_strategy), draw(raw_arguments), call_id) for call_id in ids]
