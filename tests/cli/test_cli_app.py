from unittest.mock import MagicMock, patch


class TestBuildServices:
    @patch("roombill.cli.app.get_notifier")
    @patch("roombill.cli.app.get_audit_log_repository")
    @patch("roombill.cli.app.get_meter_reading_repository")
    @patch("roombill.cli.app.get_room_repository")
    @patch("roombill.cli.app.get_rental_repository")
    @patch("roombill.cli.app.get_bill_repository")
    @patch("roombill.cli.app.get_user_repository")
    def test_returns_wired_services(self, mock_user, mock_bill, mock_rental, mock_room, mock_meter, mock_audit, mock_n):
        from roombill.cli.app import _build_services
        from roombill.services.bill_service import BillService
        from roombill.services.building_billing_service import BuildingBillingService

        bill_service, building_service = _build_services()

        assert isinstance(bill_service, BillService)
        assert isinstance(building_service, BuildingBillingService)
        assert building_service.bill_service is bill_service
        assert bill_service.notifier is mock_n.return_value
        assert bill_service.bill_repo is mock_bill.return_value


class TestMainMenu:
    @patch("roombill.cli.app._build_services")
    @patch("roombill.cli.app.questionary")
    def test_exit_immediately(self, mock_q, mock_build):
        from roombill.cli.app import main_menu

        mock_build.return_value = (MagicMock(), MagicMock())
        mock_q.text.return_value.ask.return_value = "1"
        mock_q.select.return_value.ask.return_value = "Exit"

        main_menu()
        mock_q.select.return_value.ask.assert_called_once()

    @patch("roombill.cli.app._build_services")
    @patch("roombill.cli.app.questionary")
    def test_cancel_user_prompt(self, mock_q, mock_build):
        from roombill.cli.app import main_menu

        mock_build.return_value = (MagicMock(), MagicMock())
        mock_q.text.return_value.ask.return_value = None

        main_menu()
        mock_q.select.assert_not_called()

    @patch("roombill.cli.app.list_bills_menu")
    @patch("roombill.cli.app.create_bill_for_room_menu")
    @patch("roombill.cli.app.preview_bills_menu")
    @patch("roombill.cli.app.generate_bills_menu")
    @patch("roombill.cli.app._build_services")
    @patch("roombill.cli.app.questionary")
    def test_dispatches_each_choice(self, mock_q, mock_build, mock_gen, mock_preview, mock_create, mock_list):
        from roombill.cli.app import main_menu

        bill_service, building_service = MagicMock(), MagicMock()
        mock_build.return_value = (bill_service, building_service)
        mock_q.text.return_value.ask.side_effect = ["abc", "7"]
        mock_q.select.return_value.ask.side_effect = [
            "Generate Monthly Bills",
            "Preview Building Bills",
            "Create Bill for Room",
            "List Bills",
            None,
        ]

        main_menu()

        mock_gen.assert_called_once_with(building_service, 7)
        mock_preview.assert_called_once_with(building_service, 7)
        mock_create.assert_called_once_with(bill_service, 7)
        mock_list.assert_called_once_with(bill_service, 7)


class TestMain:
    @patch("roombill.__main__.close_connection")
    @patch("roombill.__main__.main_menu")
    @patch("roombill.__main__.reconfigure")
    @patch("roombill.__main__.initialize_db")
    @patch("roombill.__main__.configure_logging")
    def test_migrates_then_runs_menu(self, mock_log, mock_init, mock_reconf, mock_menu, mock_close):
        from roombill.__main__ import main

        main()

        mock_init.assert_called_once()
        mock_reconf.assert_called_once()
        mock_menu.assert_called_once()
        mock_close.assert_called_once()

    @patch("roombill.__main__.close_connection")
    @patch("roombill.__main__.main_menu", side_effect=KeyboardInterrupt)
    @patch("roombill.__main__.reconfigure")
    @patch("roombill.__main__.initialize_db")
    @patch("roombill.__main__.configure_logging")
    def test_ctrl_c_closes_connection(self, mock_log, mock_init, mock_reconf, mock_menu, mock_close):
        from roombill.__main__ import main

        main()

        mock_close.assert_called_once()
