# kotel

The control core of a pellet boiler controller, written as a plain Python
library with no dependencies outside the standard library. It holds the
pieces that decide what the boiler does and that keep its records. Pin
access, the clock and storage are objects you pass in. The same logic
therefore runs in tests, in a simulator or next to real I/O.

## What is inside

### Records and storage: `kotel.storage`

The persistent records are dataclasses, and each one packs into one
little-endian sector with `pack()` and reads back with `unpack()`:

- `Config`, made of `Profile` values and plain settings
- `Tray`
- `Runtime` and `Runtime2`
- `Counters1` and `Counters2`
- `TempSensor`
- `NetSettings`, made of `IPAddr` values
- `TextSector`, zero-padded text of at most 20 bytes

`FileId`, `ErrorCode` and `OperationMode` are the enums that go with them.

`Tray` tracks the fuel:

- `calc_tray_fill()` gives the kilograms left in the hopper.
- `calc_total_consumed_fuel()` gives the kilograms burnt.
- `calc_tray_empty_time()` gives the feeder time at which the hopper is expected to be empty.
- `update_tray_fill()`, `set_max_fill()` and `commit_consumed()` record loading and consumption.

`Storage` holds every record and works through a backend object that you
supply. The backend needs three methods:

- `begin()`
- `read_file(file_id)`, which returns the stored bytes, or None when nothing is stored
- `update_file(file_id, data)`

The `Storage` methods are:

- `Storage.begin()` loads whatever the backend holds.
- `Storage.save()` marks the records as changed.
- `Storage.commit()` writes all records, but only after `save()` was called.

### Tasks and scheduling: `kotel.task`, `kotel.scheduler`, `kotel.heap`

- `Task` is an abstract cooperative task. It has `run()`, `resume_at()`,
  `stop()` and `resume()`, and it keeps an estimate of its run time.
- `MethodTask` wraps a function that takes the current time and returns the
  delay until its next run.
- `Scheduler` keeps a fixed set of tasks in a heap and runs those that are
  due. `run()` returns True if any task ran. Iterating over the scheduler
  yields its tasks.
- `heap_push` and `heap_pop` from `kotel.heap` maintain that heap order.

### Devices: `kotel.devices`

- `Fan` is a task that pulses the fan output, so that the on/off ratio follows
  the speed setting.
- `Feeder` is a task that runs the feeder until a given time.
- `Pump` counts its starts and calls `Storage.save()` each time it stops.
- `Sensors` reads the tray-open switch and the motor-overheat switch.

All of them drive pins through `PinIO`. This is an in-memory pin bank: it
records pin modes, together with their history, and it serves digital and
analog levels that you preset. The module also defines the pin numbers and
the active and inactive levels.

### Keyboard: `kotel.keyboard`

`Keyboard1W` decodes one analog reading into the states of several keys,
using a table of `LevelDef` entries. A new level must be read twice in a row
before the key states change. Each key has a `KeyState`:

- `pressed`, `changed` and `stable` give the current state.
- `stabilize(interval_ms, now_ms)` provides debouncing.
- A user flag is set with `set_user_state()` and read and cleared with
  `test_and_reset_user_state()`.

`make_boiler_keyboard(io)` builds the controller's three-key panel on the
keyboard pin.

### Temperature sensors: `kotel.dallas`

- `crc8` computes the one-wire CRC.
- `calculate_temperature` turns a sensor scratchpad into 1/128 °C. It raises
  `SensorFault` when a MAX31850 reports a fault.
- `SimpleDallasTemp` works over a one-wire bus object that you supply. It
  reads sensors either blocking or step by step (`AsyncState` together with
  `async_cycle()`), and it lists valid sensors with `devices()`.

### Display simulation: `kotel.matrix`

`SimulMatrix` is a simulated chain of MAX7219 LED modules. It accepts bytes
through `transfer()` and latches them with `activate()`. `draw_part(part)`
renders two pixel rows as one line of Unicode half-block characters.

### Flash: `kotel.flash`

`DataFlashBlockDevice` is an 8 KiB in-memory flash in which erased bytes
read as `0xFF`. Its methods `program()`, `read()` and `erase()` raise
`ValueError` for any range outside the device.

### Network packets: `kotel.netpackets`

- `build_ntp_request()` builds an NTP request packet.
- `parse_ntp_response()` returns Unix seconds.
- `build_dns_query()` builds a DNS A-record query.
- `parse_dns_response()` returns an `IPv4Address`, or None.

### Helpers

- `kotel.http_utils` has `split`, `trim`, the case-insensitive `icmp` and
  `iless`, `parse_http_header`, `parse_http_request_line` (which returns an
  `HttpRequestLine` holding an `HttpMethod`), `url_encode` and `url_decode`.
- `kotel.base64` has `Base64Codec`, which takes any 64-character alphabet and
  an optional padding character. The ready-made codecs are `BASE64` and
  `BASE64URL`; the second one writes no padding.
- `kotel.sha1` has `SHA1`, with `update()`, `digest()` and `hexdigest()`, and
  the function `sha1(data)`.
- `kotel.linreg` has `LinReg`, a least-squares line through samples at
  x = 0, 1, 2, …

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Examples

### Fuel accounting on the tray

```python
from kotel.storage import Tray

tray = Tray(feeder_1kg_time=240)
tray.update_tray_fill(0, 30)   # 30 kg loaded at feeder time 0
tray.feeder_time = 2400        # the feeder has run for 2400 s
print(tray.calc_tray_fill())             # 20
print(tray.calc_total_consumed_fuel())   # 10
```

### Running a task from the scheduler

```python
from kotel.scheduler import Scheduler
from kotel.task import MethodTask

now = 0

def clock():
    return now

def tick(cur_time):
    return 1000            # run again in 1000 ms

task = MethodTask(tick, clock)
scheduler = Scheduler([task], clock)
print(scheduler.run())     # True: the task was due at 0
now = 500
print(scheduler.run())     # False: next run is at 1000
```

### Hashing and encoding

```python
from kotel.base64 import BASE64
from kotel.sha1 import sha1

digest = sha1(b"Hello world")
text = BASE64.encode(digest)
assert BASE64.decode(text) == digest
```

### Parsing an HTTP request head

```python
from kotel.http_utils import parse_http_header, parse_http_request_line

first, headers = parse_http_header(
    "GET /api HTTP/1.1\r\nHost: boiler\r\nUpgrade: websocket"
)
line = parse_http_request_line(first)
print(line.method, line.path, headers)
# HttpMethod.GET /api [('Host', 'boiler'), ('Upgrade', 'websocket')]
```

### Decoding a temperature sensor scratchpad

```python
from kotel.dallas import calculate_temperature

address = bytes([0x28, 1, 2, 3, 4, 5, 6, 0])
raw = calculate_temperature(address, bytes([0x50, 0x05, 0, 0, 0x7F, 0xFF, 0, 0x10, 0]))
print(raw / 128)   # 85.0
```

## What this package does not do

- It has no command and no main program. Nothing here ties the parts together
  into a running controller loop or a state machine that switches between
  full power, low power and stop.
- It does not touch hardware. `PinIO` is an in-memory stand-in, and the
  one-wire bus that `SimpleDallasTemp` uses must be supplied by you.
- It has no storage backend. `Storage` needs an object with `begin()`,
  `read_file()` and `update_file()`; `DataFlashBlockDevice` is only a raw
  in-memory flash and does not provide that file interface.
- It has no network stack, HTTP server, WebSocket handler or web page.
  `kotel.netpackets` and `kotel.http_utils` only build and parse bytes and
  text. Sending and receiving them is up to the caller.
- It has no font or text rendering for the LED display. `SimulMatrix` only
  shows what is shifted into it.