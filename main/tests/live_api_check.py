"""
Smoke check against a running server.

    python main/tests/live_api_check.py http://localhost:8000/api

Creates its own machine, operator, items and documents with random codes and
removes what it can afterwards. Not collected by pytest.
"""

import random
import sys
from datetime import datetime, timezone

import requests

BASE_URL = "http://localhost:8000/api"


class Colors:
    GREEN = '\033[92m'
    RED = '\033[91m'
    YELLOW = '\033[93m'
    BLUE = '\033[94m'
    RESET = '\033[0m'
    BOLD = '\033[1m'


class ApiCheckRunner:
    def __init__(self, base_url=BASE_URL):
        self.base_url = base_url.rstrip('/')
        self.passed = 0
        self.failed = 0
        self.results = []
        self.created_purchases = []
        self.created_orders = []
        self.created_items = []
        self.created_recipes = []
        self.created_machines = []
        self.created_operators = []

    def log(self, message, color=Colors.RESET):
        print(f"{color}{message}{Colors.RESET}")

    def log_test(self, name, passed, message=""):
        if passed:
            self.passed += 1
            self.log(f"  ✓ {name}", Colors.GREEN)
        else:
            self.failed += 1
            self.log(f"  ✗ {name}: {message}", Colors.RED)
        self.results.append({'name': name, 'passed': passed, 'message': message})

    def random_code(self):
        return str(random.randint(100000, 999999))

    def request(self, method, endpoint, data=None, params=None):
        url = f"{self.base_url}{endpoint}"
        try:
            response = requests.request(method, url, json=data, params=params, timeout=10)
            return {
                'status': response.status_code,
                'data': response.json() if response.content else {},
                'success': response.status_code < 400,
            }
        except (requests.RequestException, ValueError) as e:
            return {'status': 0, 'data': {}, 'success': False, 'error': str(e)}

    def run_all(self):
        self.log(f"\n{'='*60}", Colors.BOLD)
        self.log("  MSK FACTORY API CHECK", Colors.BOLD)
        self.log(f"  Started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}", Colors.BLUE)
        self.log(f"{'='*60}\n", Colors.BOLD)

        res = self.request('GET', '/health')
        self.log_test("Health", res['success'], res.get('error', res['data'].get('message', '')))
        if not res['success']:
            self.print_summary()
            return

        self.check_inventory_and_production()
        self.check_shop_floor()

        self.cleanup()
        self.print_summary()

    def check_inventory_and_production(self):
        self.log("\n📦 INVENTORY & PRODUCTION", Colors.BOLD)
        self.log("-" * 40)

        code = self.random_code()
        res = self.request('POST', '/inventory', {
            'itemCode': code, 'itemType': 'Fabric', 'name': f'Check fabric {code}',
            'quantity': '100', 'unit': 'meter', 'supplier': 'Check Mills', 'pricePerUnit': '10',
        })
        self.log_test("Create item with numeric code", res['status'] == 201, res['data'].get('message', ''))
        if res['status'] != 201:
            return
        item = res['data']['data']
        self.created_items.append(item['id'])
        self.log_test("Code normalized", item['itemCode'] == f"MSK-{code}", item['itemCode'])

        res = self.request('POST', '/inventory', {
            'itemCode': 'hello', 'itemType': 'Fabric', 'name': 'Bad', 'quantity': 1, 'unit': 'm',
        })
        self.log_test("Reject invalid code", res['status'] == 400, str(res['status']))

        res = self.request('POST', '/machines', {'modelName': f'Check machine {code}', 'capacity': 10})
        self.log_test("Create machine", res['status'] == 201, res['data'].get('message', ''))
        machine_id = res['data'].get('data', {}).get('id')
        if machine_id:
            self.created_machines.append(machine_id)

        res = self.request('POST', '/recipes', {
            'designCode': f'CHK-{code}', 'name': 'Check design',
            'materials': [{'itemId': item['id'], 'quantityRequired': '2'}],
        })
        self.log_test("Create recipe", res['status'] == 201, res['data'].get('message', ''))
        recipe_id = res['data'].get('data', {}).get('id')
        if recipe_id:
            self.created_recipes.append(recipe_id)
        if not (machine_id and recipe_id):
            return

        order_body = {
            'recipeId': recipe_id, 'machineId': machine_id, 'targetQty': 30,
            'startedAt': datetime.now(timezone.utc).isoformat(),
        }
        res = self.request('POST', '/production-orders', order_body)
        self.log_test("Order consumes 60", res['status'] == 201, res['data'].get('message', ''))
        if res['status'] == 201:
            self.created_orders.append(res['data']['data']['id'])

        res = self.request('POST', '/production-orders', {**order_body, 'targetQty': 25})
        self.log_test(
            "Short order refused with 409",
            res['status'] == 409 and res['data']['error']['code'] == 'INSUFFICIENT_STOCK',
            str(res['status'])
        )

        res = self.request('GET', f"/inventory/{item['id']}")
        quantity = float(res['data'].get('data', {}).get('quantity', -1))
        self.log_test("Quantity is 40", quantity == 40, str(quantity))

        res = self.request('POST', '/purchases', {
            'supplier': 'Check Mills', 'billNumber': f'B-{code}', 'totalAmount': '100',
            'items': [{'itemCode': item['itemCode'], 'qty': '10', 'pricePerUnit': '10'}],
        })
        self.log_test("Book purchase", res['status'] == 201, res['data'].get('message', ''))
        if res['status'] == 201:
            purchase_id = res['data']['data']['id']
            res = self.request('PUT', f'/purchases/{purchase_id}', {
                'items': [{'itemCode': item['itemCode'], 'qty': '4', 'pricePerUnit': '10'}],
            })
            self.log_test("Edit purchase 10 -> 4", res['success'], res['data'].get('message', ''))
            self.created_purchases.append(purchase_id)

            res = self.request('GET', f"/inventory/{item['id']}")
            quantity = float(res['data'].get('data', {}).get('quantity', -1))
            self.log_test("Quantity is 44", quantity == 44, str(quantity))

    def check_shop_floor(self):
        self.log("\n🧵 SHOP FLOOR", Colors.BOLD)
        self.log("-" * 40)

        if not self.created_orders:
            self.log("  skipped: no production order", Colors.YELLOW)
            return
        order_id = self.created_orders[0]

        res = self.request('POST', '/operators', {'employeeId': f'CHK-{self.random_code()}', 'name': 'Check Operator'})
        self.log_test("Create operator", res['status'] == 201, res['data'].get('message', ''))
        if res['status'] != 201:
            return
        operator_id = res['data']['data']['id']
        self.created_operators.append(operator_id)

        body = {'productionOrderId': order_id, 'operatorId': operator_id}
        res = self.request('POST', '/operator-entries/start', body)
        self.log_test("Start work", res['status'] == 201, res['data'].get('message', ''))
        entry_id = res['data'].get('data', {}).get('id')

        res = self.request('POST', '/operator-entries/start', body)
        self.log_test("Second open entry conflicts", res['status'] == 409, str(res['status']))

        if entry_id:
            res = self.request('PUT', '/operator-entries/stop', {'entryId': entry_id, 'notes': 'check'})
            self.log_test("Stop work", res['success'], res['data'].get('message', ''))

        res = self.request('PUT', '/machine-logs/fulfill', {
            'productionOrderId': order_id, 'actualQtyProduced': 29, 'wastageQty': 1,
            'completedAt': datetime.now(timezone.utc).isoformat(), 'shift': 'day',
        })
        self.log_test("Fulfill order", res['success'], res['data'].get('message', ''))

        res = self.request('PUT', '/machine-logs/fulfill', {
            'productionOrderId': order_id, 'actualQtyProduced': 29, 'wastageQty': 1,
            'completedAt': datetime.now(timezone.utc).isoformat(), 'shift': 'day',
        })
        self.log_test("Second fulfill refused", res['status'] == 409, str(res['status']))

    def cleanup(self):
        self.log("\n🧹 CLEANUP", Colors.YELLOW)
        self.log("-" * 40)

        for purchase_id in self.created_purchases:
            self.request('DELETE', f'/purchases/{purchase_id}')
        # Completed orders stay as history; items, recipes and machines they
        # reference are deactivated rather than deleted
        for recipe_id in self.created_recipes:
            self.request('DELETE', f'/recipes/{recipe_id}')
        for item_id in self.created_items:
            self.request('DELETE', f'/inventory/{item_id}')
        for machine_id in self.created_machines:
            self.request('DELETE', f'/machines/{machine_id}')
        for operator_id in self.created_operators:
            self.request('DELETE', f'/operators/{operator_id}')
        self.log(f"  Cleaned up {len(self.created_purchases)} purchases, {len(self.created_items)} items", Colors.YELLOW)

    def print_summary(self):
        total = self.passed + self.failed
        pass_rate = (self.passed / total * 100) if total > 0 else 0

        self.log(f"\n{'='*60}", Colors.BOLD)
        self.log("  CHECK SUMMARY", Colors.BOLD)
        self.log(f"{'='*60}", Colors.BOLD)
        self.log(f"  Total Checks: {total}")
        self.log(f"  Passed: {self.passed}", Colors.GREEN)
        self.log(f"  Failed: {self.failed}", Colors.RED if self.failed > 0 else Colors.GREEN)
        self.log(f"  Pass Rate: {pass_rate:.1f}%", Colors.GREEN if pass_rate >= 80 else Colors.YELLOW)
        self.log(f"{'='*60}\n", Colors.BOLD)

        if self.failed > 0:
            self.log("  FAILED CHECKS:", Colors.RED)
            for result in self.results:
                if not result['passed']:
                    self.log(f"    - {result['name']}: {result['message']}", Colors.RED)
            print()


if __name__ == '__main__':
    base_url = sys.argv[1] if len(sys.argv) > 1 else BASE_URL

    runner = ApiCheckRunner(base_url)
    runner.run_all()
    sys.exit(1 if runner.failed else 0)
