import logging
import os
import tempfile
import unittest

from ghost_lens.logging_config import LOGGER_NAME, TqdmLoggingHandler, get_logger, setup_logger


class TestSetupLogger(unittest.TestCase):

    def tearDown(self):
        logger = logging.getLogger(LOGGER_NAME)
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)

    def test_console_and_file_handlers(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            log_path = os.path.join(temp_dir, 'logs', 'ghost.log')

            logger = setup_logger('debug', log_path, True)
            logger.debug("hello from the test")
            for handler in logger.handlers:
                handler.flush()

            self.assertEqual(logger.level, logging.DEBUG)
            self.assertFalse(logger.propagate)
            self.assertTrue(any(isinstance(h, logging.FileHandler) for h in logger.handlers))
            self.assertTrue(any(isinstance(h, TqdmLoggingHandler) for h in logger.handlers))
            with open(log_path, 'r', encoding='utf-8') as f:
                self.assertIn("DEBUG - hello from the test", f.read())

            for handler in logger.handlers:
                handler.close()

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logger('INFO', None, True)
        logger = setup_logger('INFO', None, True)
        self.assertEqual(len(logger.handlers), 1)

    def test_no_outputs_installs_null_handler(self):
        logger = setup_logger('INFO', None, False)
        self.assertEqual(len(logger.handlers), 1)
        self.assertIsInstance(logger.handlers[0], logging.NullHandler)

    def test_unknown_level_falls_back_to_info(self):
        logger = setup_logger('chatty', None, False)
        self.assertEqual(logger.level, logging.INFO)

    def test_child_loggers(self):
        self.assertEqual(get_logger().name, LOGGER_NAME)
        self.assertEqual(get_logger('store').name, f"{LOGGER_NAME}.store")


if __name__ == '__main__':
    unittest.main()
