"""gdoc: keeps local mirrors of topic-tagged GitHub repos and serves them with godoc."""

__version__ = "0.1.0"
