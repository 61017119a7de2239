import unittest
from unittest import mock
from dbmirror.connectors.firebird import (
    FirebirdConnector, FirebirdError, LIST_TABLES_SQL, RELATION_EXISTS_SQL, TABLE_SCHEMA_SQL,
)
from dbmirror.errors import DatabaseConnectionError
from dbmirror.models.config import DatabaseConfig


def fb_config(port=3050, charset=None):
    return DatabaseConfig("firebird", "fb1", port, "SYSDBA", "masterkey", "/data/cmms.fdb", charset)


class FirebirdConnectorTestCase(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        patcher = mock.patch("dbmirror.connectors.firebird.fb_connect")
        self.fb_connect = patcher.start()
        self.addCleanup(patcher.stop)

        self.connection = mock.MagicMock()
        self.connection.main_transaction.is_active.return_value = True
        self.cursor = mock.MagicMock()
        self.cursor.stream_blobs = []
        self.connection.cursor.return_value = self.cursor
        self.fb_connect.return_value = self.connection

    async def connected(self, config=None):
        connector = FirebirdConnector(config or fb_config())
        await connector.connect()
        return connector


class TestAttach(FirebirdConnectorTestCase):
    async def test_connect_uses_host_port_dsn(self):
        await self.connected()

        self.fb_connect.assert_called_once_with(
            "fb1/3050:/data/cmms.fdb", user="SYSDBA", password="masterkey", charset="UTF8",
        )

    async def test_dsn_without_port(self):
        connector = FirebirdConnector(fb_config(port=None))
        self.assertEqual(connector.dsn, "fb1:/data/cmms.fdb")

    async def test_configured_charset_is_passed(self):
        await self.connected(fb_config(charset="WIN1250"))
        self.assertEqual(self.fb_connect.call_args.kwargs["charset"], "WIN1250")

    async def test_driver_error_becomes_connection_error(self):
        self.fb_connect.side_effect = FirebirdError("Your user name and password are not defined")
        connector = FirebirdConnector(fb_config())

        with self.assertRaises(DatabaseConnectionError) as ctx:
            await connector.connect()

        self.assertIn("fb1/3050:/data/cmms.fdb", str(ctx.exception))
        self.assertIsInstance(ctx.exception.__cause__, FirebirdError)

    async def test_disconnect_rolls_back_and_closes(self):
        connector = await self.connected()

        await connector.disconnect()

        self.connection.rollback.assert_called_once_with()
        self.connection.close.assert_called_once_with()
        await connector.disconnect()
        self.connection.close.assert_called_once_with()

    async def test_disconnect_closes_even_if_rollback_fails(self):
        self.connection.rollback.side_effect = FirebirdError("connection lost")
        connector = await self.connected()

        with self.assertRaises(FirebirdError):
            await connector.disconnect()

        self.connection.close.assert_called_once_with()

    async def test_cancel_operation_is_forwarded(self):
        connector = await self.connected()

        await connector.cancel_operation()

        self.connection.cancel_operation.assert_called_once_with()

    async def test_cancel_without_attachment_is_a_no_op(self):
        await FirebirdConnector(fb_config()).cancel_operation()
        self.connection.cancel_operation.assert_not_called()


class TestCatalogQueries(FirebirdConnectorTestCase):
    async def test_list_tables(self):
        self.cursor.fetchall.return_value = [("CUSTOMERS",), ("EMP",)]
        connector = await self.connected()

        self.assertEqual(await connector.list_tables(), ["CUSTOMERS", "EMP"])
        self.cursor.execute.assert_called_once_with(LIST_TABLES_SQL, ())
        self.cursor.close.assert_called_once_with()

    async def test_relation_exists_binds_the_table_name(self):
        connector = await self.connected()

        self.cursor.fetchall.return_value = [(1,)]
        self.assertTrue(await connector.relation_exists("EMP"))
        self.cursor.execute.assert_called_with(RELATION_EXISTS_SQL, ("EMP",))

        self.cursor.fetchall.return_value = [(0,)]
        self.assertFalse(await connector.relation_exists("GHOST"))
        self.cursor.execute.assert_called_with(RELATION_EXISTS_SQL, ("GHOST",))

    async def test_table_schema_rows_become_dicts(self):
        self.cursor.fetchall.return_value = [
            ("ID", 8, 4, 0, 0, 0),
            ("NAME", 37, 50, None, None, 0),
            ("NOTE", 261, 8, None, None, 1),
        ]
        connector = await self.connected()

        schema = await connector.get_table_schema("EMP")

        self.cursor.execute.assert_called_once_with(TABLE_SCHEMA_SQL, ("EMP",))
        self.assertEqual(schema[1], {
            "name": "NAME", "type": 37, "length": 50, "precision": 0, "scale": 0, "sub_type": 0,
        })
        self.assertEqual([(c["name"], c["sub_type"]) for c in schema], [("ID", 0), ("NAME", 0), ("NOTE", 1)])

    async def test_cursor_is_closed_when_query_fails(self):
        self.cursor.execute.side_effect = FirebirdError("table unknown")
        connector = await self.connected()

        with self.assertRaises(FirebirdError):
            await connector.list_tables()

        self.cursor.close.assert_called_once_with()


class TestSelectRows(FirebirdConnectorTestCase):
    async def test_text_blobs_are_streamed_until_cursor_closes(self):
        self.cursor.fetchall.return_value = [(1, "blob-1"), (2, None)]
        connector = await self.connected()

        async with connector.select_rows("EMP", ["ID", "NOTE"], ["NOTE"]) as rows:
            self.assertEqual(rows, [[1, "blob-1"], [2, None]])
            self.assertEqual(self.cursor.stream_blobs, ["NOTE"])
            self.cursor.execute.assert_called_once_with('SELECT "ID", "NOTE" FROM "EMP"')
            self.cursor.close.assert_not_called()
            self.connection.commit.assert_not_called()

        self.cursor.close.assert_called_once_with()
        self.connection.commit.assert_called_once_with()

    async def test_identifiers_are_quoted_without_colon_escaping(self):
        connector = await self.connected()
        self.cursor.fetchall.return_value = []

        async with connector.select_rows('T:1', ["A:B", 'X"Y']):
            pass

        self.cursor.execute.assert_called_once_with('SELECT "A:B", "X""Y" FROM "T:1"')

    async def test_inactive_transaction_is_not_committed(self):
        self.connection.main_transaction.is_active.return_value = False
        self.cursor.fetchall.return_value = []
        connector = await self.connected()

        async with connector.select_rows("EMP", ["ID"]):
            pass

        self.cursor.close.assert_called_once_with()
        self.connection.commit.assert_not_called()

    async def test_failed_select_closes_the_cursor(self):
        self.cursor.execute.side_effect = FirebirdError("no permission for SELECT access")
        connector = await self.connected()

        with self.assertRaises(FirebirdError):
            async with connector.select_rows("EMP", ["ID"]):
                self.fail("body must not run")

        self.cursor.close.assert_called_once_with()


if __name__ == '__main__':
    unittest.main()
