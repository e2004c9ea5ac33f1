"""
Key/value persistence for engine state.

The engine only needs get/set on strings; what sits behind that is up to the
caller. Three backends are provided: an in-memory dict, a CSV file (kept the
same way the session map is kept on disk) and Streamlit's session state.
"""

import os
import logging
import pandas as pd
import streamlit as st

logger = logging.getLogger(__name__)

STATE_FILE = "engine_state.csv"


class PersistentStore:
    """Abstract key -> string map."""

    def get(self, key, default=None):
        raise NotImplementedError

    def set(self, key, value):
        raise NotImplementedError


class InMemoryStore(PersistentStore):

    def __init__(self, initial=None):
        self._data = dict(initial or {})

    def get(self, key, default=None):
        return self._data.get(key, default)

    def set(self, key, value):
        self._data[key] = str(value)

    def snapshot(self):
        return dict(self._data)


class CsvStore(PersistentStore):
    """
    Store backed by a two-column (key, value) CSV file.

    Every set() rewrites the file, so values survive process restarts. There
    is no atomicity across keys.
    """

    COLUMNS = ["key", "value"]

    def __init__(self, path=STATE_FILE):
        self.path = path
        if not os.path.exists(self.path):
            pd.DataFrame(columns=self.COLUMNS).to_csv(self.path, index=False)

    def _read(self):
        return pd.read_csv(self.path, dtype=str, keep_default_na=False)

    def get(self, key, default=None):
        df = self._read()
        match = df[df["key"] == key]["value"].values
        if len(match) == 0:
            return default
        return match[0]

    def set(self, key, value):
        df = self._read()
        if key in df["key"].values:
            df.loc[df["key"] == key, "value"] = str(value)
        else:
            new_entry = pd.DataFrame([[key, str(value)]], columns=self.COLUMNS)
            df = pd.concat([df, new_entry], ignore_index=True)
        df.to_csv(self.path, index=False)
        logger.debug("Stored %s in %s", key, self.path)


class SessionStateStore(PersistentStore):
    """Store living in st.session_state for the lifetime of a browser session."""

    def __init__(self, namespace="engine"):
        self.namespace = namespace

    def _key(self, key):
        return f"{self.namespace}:{key}"

    def get(self, key, default=None):
        return st.session_state.get(self._key(key), default)

    def set(self, key, value):
        st.session_state[self._key(key)] = str(value)
