"""
JSON-RPC server implementation for the PerfSteps serve

Speaks JSON-RPC 2.0 over stdin/stdout with LSP-style Content-Length framing.
"""

import asyncio
import json
import sys
from typing import Dict, Any, Optional, BinaryIO, Union, List

from .models import InitializeRequest, StepRequest, TableData, DiscoverResponse
from .step_registry import StepRegistry
from .test_context import TestContext
from .logging.dual_logger import DualLoggerProvider


Params = Union[Dict[str, Any], List[Any], None]

INTERNAL_ERROR = -32603


class PerfStepsServe:
    """JSON-RPC server for performance step execution"""

    def __init__(
        self,
        step_registry: StepRegistry,
        test_context: TestContext,
        logger_provider: DualLoggerProvider,
        stdin: Optional[BinaryIO] = None,
        stdout: Optional[BinaryIO] = None
    ):
        self._step_registry = step_registry
        self._test_context = test_context
        self._logger_provider = logger_provider
        self._logger = logger_provider.get_logger(self.__class__.__name__)
        self._stdin = stdin
        self._stdout = stdout
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def run(self) -> None:
        """Run the JSON-RPC server on stdin/stdout"""
        self._logger.info("Starting JSON-RPC server on stdin/stdout")
        self._running = True

        stdin = self._stdin or sys.stdin.buffer

        try:
            await self._read_loop(stdin)
        except asyncio.CancelledError:
            self._logger.info("Server cancelled")
        finally:
            self._running = False
            self._logger.info("JSON-RPC server stopped")

    async def _read_loop(self, stdin: BinaryIO) -> None:
        """Read and process JSON-RPC requests from stdin"""
        while self._running:
            try:
                content = await self._read_frame(stdin)
                if content is None:
                    return

                response = await self.handle_request(content.decode('utf-8'))
                if response:
                    self._send_response(response)

            except Exception as e:
                self._logger.error(f"Error in read loop: {e}", exc_info=True)

    async def _read_frame(self, stdin: BinaryIO) -> Optional[bytes]:
        """Read one framed message, None at end of stream"""
        loop = asyncio.get_running_loop()

        # Headers first, terminated by an empty line
        headers = {}
        while True:
            header_line = await loop.run_in_executor(None, stdin.readline)
            if not header_line:
                return None

            header_str = header_line.decode('utf-8').strip()
            if not header_str:
                break

            if ':' in header_str:
                key, value = header_str.split(':', 1)
                headers[key.strip()] = value.strip()

        if 'Content-Length' not in headers:
            raise ValueError("Missing Content-Length header")

        content_length = int(headers['Content-Length'])
        content_bytes = await loop.run_in_executor(None, stdin.read, content_length)
        if not content_bytes:
            return None
        return content_bytes

    async def handle_request(self, request_text: str) -> Optional[str]:
        """Handle a JSON-RPC request and return the response text, None for notifications"""
        request_id = None
        try:
            request = json.loads(request_text)
            request_id = request.get('id')

            result = await self._route_method(request.get('method', ''), request.get('params'))

            if request_id is None:
                return None
            return json.dumps({'jsonrpc': '2.0', 'id': request_id, 'result': result})

        except Exception as e:
            self._logger.error(f"Error handling request: {e}", exc_info=True)

            if request_id is None:
                return None
            return json.dumps({
                'jsonrpc': '2.0',
                'id': request_id,
                'error': {'code': INTERNAL_ERROR, 'message': str(e)}
            })

    async def _route_method(self, method: str, params: Params) -> Any:
        """Route method to appropriate handler"""
        handlers = {
            'health': self._handle_health,
            'initialize': self._handle_initialize,
            'discover': self._handle_discover,
            'executeStep': self._handle_execute_step,
            'cleanup': self._handle_cleanup,
            'shutdown': self._handle_shutdown
        }

        handler = handlers.get(method)
        if not handler:
            raise ValueError(f"Unknown method: {method}")

        return await handler(params if params is not None else {})

    def _send_response(self, response: str) -> None:
        """Send JSON-RPC response to stdout with LSP-style headers"""
        stdout = self._stdout or sys.stdout.buffer
        response_bytes = response.encode('utf-8')

        stdout.write(f"Content-Length: {len(response_bytes)}\r\n\r\n".encode('utf-8'))
        stdout.write(response_bytes)
        stdout.flush()

    @staticmethod
    def _single_object(params: Params) -> Dict[str, Any]:
        """Unwrap Harmony's [{...}] parameter form"""
        if isinstance(params, list):
            if len(params) == 1 and isinstance(params[0], dict):
                return dict(params[0])
            raise ValueError(f"Invalid parameters: {params}")
        return dict(params or {})

    async def _handle_health(self, params: Params) -> bool:
        """Health check is parameterless"""
        self._logger.debug("Health check requested")
        return True

    async def _handle_initialize(self, params: Params) -> bool:
        """Handle initialization request"""
        args = self._single_object(params)
        # testRunId is computed from hostPid and featureId
        args.pop('testRunId', None)
        request = InitializeRequest(**args)

        self._logger.info(
            f"Initializing with hostPid: {request.hostPid}, featureId: {request.featureId}, "
            f"role: {request.role}, platform: {request.platform}, scenario: {request.scenario}"
        )

        try:
            self._test_context.initialize(
                role=request.role,
                platform=request.platform,
                scenario=request.scenario,
                test_run_id=request.testRunId
            )

            self._test_context.set_data("harmony_host_pid", request.hostPid)
            self._test_context.set_data("harmony_feature_id", request.featureId)

            self._logger.info("Initialization successful")
            return True

        except Exception as e:
            self._logger.error(f"Failed to initialize: {e}", exc_info=True)
            return False

    async def _handle_discover(self, params: Params) -> Dict[str, Any]:
        """Handle step discovery request"""
        response = DiscoverResponse(steps=self._step_registry.get_all_steps())

        self._logger.info(f"Discovered {len(response.steps)} step definitions")

        return {
            'steps': [
                {'type': step.type, 'pattern': step.pattern}
                for step in response.steps
            ]
        }

    async def _handle_execute_step(self, params: Params) -> Dict[str, Any]:
        """Handle step execution request"""
        args = self._single_object(params)
        if 'type' in args and 'stepType' not in args:
            args['stepType'] = args.pop('type')
        if 'text' in args and 'step' not in args:
            args['step'] = args.pop('text')
        if isinstance(args.get('table'), dict):
            args['table'] = TableData(**args['table'])
        request = StepRequest(**args)

        self._logger.info(f"Executing step: {request.stepType} {request.step}")

        try:
            result = await self._step_registry.execute_step(
                step_type=request.stepType,
                step_text=request.step,
                parameters=request.parameters,
                table=request.table
            )
            self._logger.info("Step executed successfully")

        except Exception as e:
            self._logger.error(f"Step execution failed: {e}")
            return {
                'success': False,
                'error': str(e),
                'data': {},
                'logs': self._collect_logs()
            }

        return {
            'success': result.success,
            'error': result.error,
            'data': result.data,
            'logs': self._collect_logs()
        }

    def _collect_logs(self) -> List[Dict[str, str]]:
        return [
            {'level': log.level, 'message': log.message}
            for log in self._logger_provider.get_all_logs()
        ]

    async def _handle_cleanup(self, params: Params) -> None:
        """Handle cleanup request"""
        self._logger.info("Cleaning up resources")
        self._test_context.cleanup()

    async def _handle_shutdown(self, params: Params) -> None:
        """Handle shutdown request"""
        self._logger.info("Shutdown requested")
        self._running = False
