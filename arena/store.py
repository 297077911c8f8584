# SPDX-License-Identifier: GPL-2.0-or-later
"""Access to the MongoDB document store holding agents, events and results."""

import contextlib
import logging

from pymongo import AsyncMongoClient
from pymongo.errors import PyMongoError

from arena.errors import DataSourceError, PersistenceError


class StoreSession:
    """Queries and writes run against one open database."""

    def __init__(self, db, collections):
        self.db = db
        self.agents = db[collections['agents']]
        self.events = db[collections['events']]
        self.results = db[collections['results']]

    async def find_agents(self):
        try:
            return await self.agents.find({}).to_list(None)
        except PyMongoError as e:
            raise DataSourceError('cannot load agents: {}'.format(e)) from e

    async def find_pending_events(self):
        try:
            return await self.events.find({'played': False}).to_list(None)
        except PyMongoError as e:
            raise DataSourceError('cannot load events: {}'.format(e)) from e

    async def insert_result(self, document):
        try:
            await self.results.insert_one(document)
        except PyMongoError as e:
            raise PersistenceError('cannot insert result: {}'.format(e)) from e

    async def mark_played(self, event_id):
        try:
            await self.events.update_one(
                {'_id': event_id}, {'$set': {'played': True}}
            )
        except PyMongoError as e:
            raise PersistenceError(
                'cannot mark event {} as played: {}'.format(event_id, e)
            ) from e


class MongoStore:
    def __init__(self, config):
        mongo = config['mongo']
        self.connection_string = mongo['connection_string']
        self.database = mongo['database']
        self.collections = {
            'agents': mongo.get('agents_collection', 'agents'),
            'events': mongo.get('events_collection', 'events'),
            'results': mongo.get('results_collection', 'results'),
        }

    # A new client is opened for each cycle, in order to prevent issues if
    # the database restarts between cycles.
    @contextlib.asynccontextmanager
    async def connect(self):
        try:
            client = AsyncMongoClient(self.connection_string)
        except PyMongoError as e:
            raise DataSourceError('cannot connect to store: {}'.format(e)) from e
        try:
            yield StoreSession(client[self.database], self.collections)
        finally:
            try:
                await client.close()
            except PyMongoError:
                logging.exception('could not close store client')
