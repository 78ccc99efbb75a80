from __future__ import annotations

import asyncio
import logging
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Tuple

import networkx as nx

from railgraph.config.settings import StoreConfig
from railgraph.errors import NotFoundError, PersistenceError, ValidationError
from railgraph.graph.graph_schema import IDLE, Edge, Event, Mover, Node
from railgraph.utils.time import iso_timestamp

logger = logging.getLogger("railgraph.store")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS nodes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    x REAL NOT NULL,
    y REAL NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS edges (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    node_a_id INTEGER NOT NULL REFERENCES nodes(id),
    node_b_id INTEGER NOT NULL REFERENCES nodes(id)
);

CREATE TABLE IF NOT EXISTS movers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    x REAL NOT NULL,
    y REAL NOT NULL,
    current_node_id INTEGER REFERENCES nodes(id),
    target_node_id INTEGER REFERENCES nodes(id),
    speed_kmh REAL NOT NULL DEFAULT 80,
    departure_time TEXT,
    status TEXT NOT NULL DEFAULT 'idle'
);

CREATE TABLE IF NOT EXISTS events (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    type TEXT NOT NULL,
    message TEXT NOT NULL,
    timestamp TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value TEXT
);
"""

# Two stations 600 units (150 km) apart, one train parked at the first.
SEED_NODES: Tuple[Tuple[str, float, float], ...] = (
    ("Central Junction", 50.0, 300.0),
    ("Northfield Terminal", 650.0, 300.0),
)
SEED_MOVER = ("Express-01", 80.0)

# Resolves the connection target against the node list read inside the
# commit transaction. Returns ``None`` when there is nothing to connect to.
ConnectionResolver = Callable[[List[Node]], Optional[int]]


@dataclass(frozen=True)
class GraphSnapshot:
    """
    Consistent read of the full simulation state for rendering.
    """

    nodes: List[Node]
    edges: List[Edge]
    movers: List[Mover]
    events: List[Event] = field(default_factory=list)


class GraphStore:
    """
    Durable store for stations, tracks, trains, events and settings.

    Every mutation is committed to SQLite before the call returns and
    mirrored into an undirected networkx graph used for topology queries.
    The connection is shared and serialised with a thread lock; callers
    mutating a mover take that mover's ``asyncio.Lock`` first.
    """

    def __init__(self, config: StoreConfig | None = None) -> None:
        self.config = config or StoreConfig()
        self.path = self._prepare_path(self.config.path)

        self._conn = sqlite3.connect(self.path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._mover_locks: Dict[int, asyncio.Lock] = {}
        self._graph = nx.Graph()

        self._init_schema()
        self._load_topology()
        if self.node_count() == 0:
            self._write(self._seed, message="seed")
            self._load_topology()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _prepare_path(path: str) -> str:
        if path == ":memory:":
            return path
        candidate = Path(path).expanduser()
        candidate.parent.mkdir(parents=True, exist_ok=True)
        return str(candidate)

    def _init_schema(self) -> None:
        with self._lock, self._conn:
            self._conn.executescript(_SCHEMA)

    def _load_topology(self) -> None:
        graph = nx.Graph()
        for node in self.get_nodes():
            graph.add_node(node.id, data=node)
        for edge in self.get_edges():
            graph.add_edge(edge.node_a_id, edge.node_b_id, data=edge)
        self._graph = graph

    @contextmanager
    def _transaction(self, message: str) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                with self._conn:
                    yield self._conn
            except sqlite3.Error as exc:
                logger.error("store write failed (%s): %s", message, exc)
                raise PersistenceError(f"{message}: {exc}") from exc

    def _write(self, op: Callable[[sqlite3.Connection], object], *, message: str):
        with self._transaction(message) as conn:
            return op(conn)

    def _read(self, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        with self._lock:
            try:
                return self._conn.execute(sql, params).fetchall()
            except sqlite3.Error as exc:
                logger.error("store read failed: %s", exc)
                raise PersistenceError(f"read failed: {exc}") from exc

    def _seed(
        self,
        conn: sqlite3.Connection,
        message: str = "Railway simulation initialized. Two stations online.",
    ) -> None:
        now = iso_timestamp()
        ids = []
        for name, x, y in SEED_NODES:
            cur = conn.execute(
                "INSERT INTO nodes (name, x, y, created_at) VALUES (?, ?, ?, ?)",
                (name, x, y, now),
            )
            ids.append(cur.lastrowid)

        conn.execute(
            "INSERT INTO edges (node_a_id, node_b_id) VALUES (?, ?)",
            (ids[0], ids[1]),
        )

        name, speed = SEED_MOVER
        _, x, y = SEED_NODES[0]
        conn.execute(
            "INSERT INTO movers (name, x, y, current_node_id, speed_kmh, status) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (name, x, y, ids[0], speed, IDLE),
        )
        conn.execute(
            "INSERT INTO events (type, message, timestamp) VALUES (?, ?, ?)",
            ("SYSTEM", message, now),
        )

    @staticmethod
    def _node(row: sqlite3.Row) -> Node:
        return Node(
            id=row["id"],
            name=row["name"],
            x=row["x"],
            y=row["y"],
            created_at=row["created_at"],
        )

    @staticmethod
    def _edge(row: sqlite3.Row) -> Edge:
        return Edge(id=row["id"], node_a_id=row["node_a_id"], node_b_id=row["node_b_id"])

    @staticmethod
    def _mover(row: sqlite3.Row) -> Mover:
        return Mover(
            id=row["id"],
            name=row["name"],
            x=row["x"],
            y=row["y"],
            current_node_id=row["current_node_id"],
            target_node_id=row["target_node_id"],
            speed_kmh=row["speed_kmh"],
            departure_time=row["departure_time"],
            status=row["status"],
        )

    @staticmethod
    def _event(row: sqlite3.Row) -> Event:
        return Event(
            id=row["id"],
            type=row["type"],
            message=row["message"],
            timestamp=row["timestamp"],
        )

    # -------------------- Nodes --------------------

    def get_node(self, node_id: int) -> Optional[Node]:
        rows = self._read("SELECT * FROM nodes WHERE id = ?", (node_id,))
        return self._node(rows[0]) if rows else None

    def get_nodes(self) -> List[Node]:
        return [self._node(r) for r in self._read("SELECT * FROM nodes ORDER BY id")]

    def recent_nodes(self, limit: int) -> List[Node]:
        rows = self._read("SELECT * FROM nodes ORDER BY id DESC LIMIT ?", (limit,))
        return [self._node(r) for r in reversed(rows)]

    def node_count(self) -> int:
        return self._read("SELECT COUNT(*) FROM nodes")[0][0]

    def add_node(self, name: str, x: float, y: float) -> Node:
        created_at = iso_timestamp()

        def op(conn: sqlite3.Connection) -> int:
            cur = conn.execute(
                "INSERT INTO nodes (name, x, y, created_at) VALUES (?, ?, ?, ?)",
                (name, x, y, created_at),
            )
            return cur.lastrowid

        node = Node(
            id=self._write(op, message="add node"),
            name=name,
            x=x,
            y=y,
            created_at=created_at,
        )
        self._graph.add_node(node.id, data=node)
        return node

    # -------------------- Edges --------------------

    def get_edges(self) -> List[Edge]:
        return [self._edge(r) for r in self._read("SELECT * FROM edges ORDER BY id")]

    def edge_count(self) -> int:
        return self._read("SELECT COUNT(*) FROM edges")[0][0]

    def add_edge(self, node_a_id: int, node_b_id: int) -> Edge:
        if node_a_id == node_b_id:
            raise ValidationError("edge endpoints must be distinct")
        for node_id in (node_a_id, node_b_id):
            if self.get_node(node_id) is None:
                raise NotFoundError(f"Node {node_id} not found")

        def op(conn: sqlite3.Connection) -> int:
            cur = conn.execute(
                "INSERT INTO edges (node_a_id, node_b_id) VALUES (?, ?)",
                (node_a_id, node_b_id),
            )
            return cur.lastrowid

        edge = Edge(
            id=self._write(op, message="add edge"),
            node_a_id=node_a_id,
            node_b_id=node_b_id,
        )
        self._graph.add_edge(node_a_id, node_b_id, data=edge)
        return edge

    def commit_node_with_edge(
        self,
        name: str,
        x: float,
        y: float,
        resolve: ConnectionResolver,
    ) -> Tuple[Node, Optional[Edge]]:
        """
        Insert a node and its connecting edge in one transaction.

        ``resolve`` receives the nodes that existed before the insert,
        read inside the same transaction, and picks the node to connect.
        """
        created_at = iso_timestamp()

        def op(conn: sqlite3.Connection) -> Tuple[Node, Optional[Edge]]:
            existing = [
                self._node(r)
                for r in conn.execute("SELECT * FROM nodes ORDER BY id").fetchall()
            ]
            connect_to = resolve(existing)
            if connect_to is not None and connect_to not in {n.id for n in existing}:
                raise ValidationError(f"Node {connect_to} not found")

            cur = conn.execute(
                "INSERT INTO nodes (name, x, y, created_at) VALUES (?, ?, ?, ?)",
                (name, x, y, created_at),
            )
            node = Node(id=cur.lastrowid, name=name, x=x, y=y, created_at=created_at)

            edge = None
            if connect_to is not None:
                cur = conn.execute(
                    "INSERT INTO edges (node_a_id, node_b_id) VALUES (?, ?)",
                    (connect_to, node.id),
                )
                edge = Edge(id=cur.lastrowid, node_a_id=connect_to, node_b_id=node.id)
            return node, edge

        node, edge = self._write(op, message="commit expansion")
        self._graph.add_node(node.id, data=node)
        if edge is not None:
            self._graph.add_edge(edge.node_a_id, edge.node_b_id, data=edge)
        return node, edge

    # -------------------- Movers --------------------

    def get_mover(self, mover_id: int) -> Optional[Mover]:
        rows = self._read("SELECT * FROM movers WHERE id = ?", (mover_id,))
        return self._mover(rows[0]) if rows else None

    def get_movers(self) -> List[Mover]:
        return [self._mover(r) for r in self._read("SELECT * FROM movers ORDER BY id")]

    def mover_count(self) -> int:
        return self._read("SELECT COUNT(*) FROM movers")[0][0]

    def add_mover(self, name: str, node_id: int, speed_kmh: float) -> Mover:
        node = self.get_node(node_id)
        if node is None:
            raise NotFoundError(f"Node {node_id} not found")

        def op(conn: sqlite3.Connection) -> int:
            cur = conn.execute(
                "INSERT INTO movers (name, x, y, current_node_id, speed_kmh, status) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (name, node.x, node.y, node.id, speed_kmh, IDLE),
            )
            return cur.lastrowid

        return Mover(
            id=self._write(op, message="add mover"),
            name=name,
            x=node.x,
            y=node.y,
            current_node_id=node.id,
            target_node_id=None,
            speed_kmh=speed_kmh,
            departure_time=None,
            status=IDLE,
        )

    def update_mover(self, mover: Mover) -> Mover:
        """
        Persist the full mover row after checking its invariants.
        """
        mover.check()
        for node_id in (mover.current_node_id, mover.target_node_id):
            if node_id is not None and node_id not in self._graph:
                raise NotFoundError(f"Node {node_id} not found")

        def op(conn: sqlite3.Connection) -> int:
            cur = conn.execute(
                "UPDATE movers SET x = ?, y = ?, current_node_id = ?, "
                "target_node_id = ?, departure_time = ?, status = ? WHERE id = ?",
                (
                    mover.x,
                    mover.y,
                    mover.current_node_id,
                    mover.target_node_id,
                    mover.departure_time,
                    mover.status,
                    mover.id,
                ),
            )
            return cur.rowcount

        if self._write(op, message=f"update mover {mover.id}") == 0:
            raise NotFoundError(f"Mover {mover.id} not found")
        return mover

    def mover_lock(self, mover_id: int) -> asyncio.Lock:
        lock = self._mover_locks.get(mover_id)
        if lock is None:
            lock = asyncio.Lock()
            self._mover_locks[mover_id] = lock
        return lock

    # -------------------- Events --------------------

    def add_event(self, type: str, message: str) -> Event:
        timestamp = iso_timestamp()

        def op(conn: sqlite3.Connection) -> int:
            cur = conn.execute(
                "INSERT INTO events (type, message, timestamp) VALUES (?, ?, ?)",
                (type, message, timestamp),
            )
            return cur.lastrowid

        return Event(
            id=self._write(op, message="add event"),
            type=type,
            message=message,
            timestamp=timestamp,
        )

    def recent_events(self, limit: int | None = None) -> List[Event]:
        limit = self.config.recent_events if limit is None else limit
        rows = self._read("SELECT * FROM events ORDER BY id DESC LIMIT ?", (limit,))
        return [self._event(r) for r in rows]

    # -------------------- Settings --------------------

    def get_setting(self, key: str, default: Optional[str] = None) -> Optional[str]:
        rows = self._read("SELECT value FROM settings WHERE key = ?", (key,))
        return rows[0]["value"] if rows else default

    def set_setting(self, key: str, value: object) -> None:
        self._write(
            lambda conn: conn.execute(
                "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)",
                (key, str(value)),
            ),
            message=f"set {key}",
        )

    # -------------------- Topology --------------------

    def neighbors(self, node_id: int) -> List[int]:
        if node_id not in self._graph:
            return []
        return sorted(self._graph.neighbors(node_id))

    def topology(self) -> nx.Graph:
        return self._graph.copy()

    # -------------------- Snapshot & lifecycle --------------------

    def snapshot(self, event_limit: int | None = None) -> GraphSnapshot:
        with self._lock:
            conn = self._conn
            nodes = [self._node(r) for r in conn.execute("SELECT * FROM nodes ORDER BY id")]
            edges = [self._edge(r) for r in conn.execute("SELECT * FROM edges ORDER BY id")]
            movers = [self._mover(r) for r in conn.execute("SELECT * FROM movers ORDER BY id")]
        return GraphSnapshot(
            nodes=nodes,
            edges=edges,
            movers=movers,
            events=self.recent_events(event_limit),
        )

    def reset(self) -> None:
        """
        Clear nodes, edges, movers and events, restart ids at 1, re-seed.
        """

        def op(conn: sqlite3.Connection) -> None:
            for table in ("movers", "events", "edges", "nodes"):
                conn.execute(f"DELETE FROM {table}")
            conn.execute(
                "DELETE FROM sqlite_sequence WHERE name IN "
                "('movers', 'events', 'edges', 'nodes')"
            )
            self._seed(conn, "Simulation reset. Systems online.")

        self._write(op, message="reset")
        self._mover_locks.clear()
        self._load_topology()
        logger.info("simulation reset; %s nodes seeded", self.node_count())

    def close(self) -> None:
        with self._lock:
            self._conn.close()
